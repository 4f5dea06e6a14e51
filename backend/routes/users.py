# backend/routes/users.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import Optional, Literal
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from database import get_db
from models.users import User, UserRole
from models.request import Request as SupplyRequest
from models.stock_entry import StockEntry
from models.stock import StockMovement
from utils.tokenJWT import require_admin
from utils.hashing import get_password_hash
from utils.audit import write_log, client_ip
from schemas.user import UserCreate, UserUpdate, UserResponse, UserPage

router = APIRouter(prefix="/users", tags=["Users"])


def _get_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    return user


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(User).filter(func.lower(User.email) == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("", response_model=UserPage)
def list_users(
    q: Optional[str] = Query(None, description="Busca por nome ou e-mail"),
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: Literal["id", "name", "email", "role"] = "name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter(or_(User.email.ilike(like), User.name.ilike(like)))
    if role:
        query = query.filter(User.role == role.value)

    sort_map = {"id": User.id, "name": User.name, "email": User.email, "role": User.role}
    col = sort_map.get(sort_by, User.name)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": users, "total": total, "page": page, "page_size": page_size}


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return _get_or_404(db, user_id)


@router.post("", status_code=201)
def create_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    email = payload.email.strip().lower()
    if _email_taken(db, email):
        raise HTTPException(status_code=400, detail="E-mail já cadastrado")

    user = User(
        name=payload.name, email=email, password_hash=get_password_hash(payload.password),
        role=payload.role.value, school=payload.school,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_CREATE", resource="users",
              resource_id=user.id, ip=client_ip(request), meta={"email": user.email, "role": user.role})
    return {"id": user.id, "message": "Usuário criado com sucesso"}


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = _get_or_404(db, user_id)

    if payload.email is not None:
        email = payload.email.strip().lower()
        if _email_taken(db, email, exclude_id=user.id):
            raise HTTPException(status_code=400, detail="E-mail já cadastrado")
        user.email = email
    if payload.name is not None:
        user.name = payload.name
    if payload.school is not None:
        user.school = payload.school
    if payload.password:
        user.password_hash = get_password_hash(payload.password)
    if payload.role is not None:
        # An administrator demoting themselves would lock the panel
        if user.id == current_user.id and payload.role != UserRole.administrador:
            raise HTTPException(status_code=400, detail="Você não pode alterar o seu próprio papel")
        user.role = payload.role.value

    db.commit()

    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users",
              resource_id=user.id, ip=client_ip(request), meta={"role": user.role})
    return {"message": "Usuário atualizado com sucesso"}


# Delete a user account (Admin only)
@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = _get_or_404(db, user_id)

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="Você não pode excluir a sua própria conta")

    has_history = (
        db.query(SupplyRequest).filter(or_(
            SupplyRequest.requester_id == user.id,
            SupplyRequest.approved_by == user.id,
            SupplyRequest.dispatched_by == user.id,
        )).count()
        or db.query(StockEntry).filter(StockEntry.created_by == user.id).count()
        or db.query(StockMovement).filter(StockMovement.user_id == user.id).count()
    )
    if has_history:
        raise HTTPException(
            status_code=400,
            detail="Não é possível excluir usuário com solicitações ou movimentações registradas",
        )

    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              resource_id=user_id, ip=client_ip(request), meta={"email": email})
    return {"message": f"Usuário {email} excluído com sucesso"}
