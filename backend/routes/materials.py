# backend/routes/materials.py
from typing import Optional, List, Literal
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, require_staff
from utils.audit import write_log, client_ip
from models.users import User
from models.material import Material
from models.request import RequestItem
from models.stock_entry import StockEntry
from models.stock import StockMovement
import schemas.material as material_schemas

router = APIRouter(prefix="/materials", tags=["Materials"])


def _get_or_404(db: Session, material_id: int) -> Material:
    material = db.query(Material).filter(Material.id == material_id).first()
    if not material:
        raise HTTPException(status_code=404, detail="Material não encontrado")
    return material


# =========================
# LIST
# =========================
@router.get("", response_model=material_schemas.MaterialPage)
def list_materials(
    name: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, description="Only materials at or below min_stock"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    sort_by: Literal["id", "name", "category", "current_stock", "min_stock"] = "name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Material)

    if name: query = query.filter(Material.name.ilike(f"%{name}%"))
    if category: query = query.filter(Material.category.ilike(f"%{category}%"))
    if low_stock: query = query.filter(Material.current_stock <= Material.min_stock)

    sort_map = {
        "id": Material.id, "name": Material.name, "category": Material.category,
        "current_stock": Material.current_stock, "min_stock": Material.min_stock,
    }
    col = sort_map.get(sort_by, Material.name)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# Autocomplete for the request form
@router.get("/search", response_model=List[material_schemas.MaterialSearchItem])
def search_materials(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Material)
        .filter(Material.name.ilike(f"%{q}%"))
        .order_by(Material.name.asc())
        .limit(limit)
        .all()
    )


@router.get("/{material_id}", response_model=material_schemas.MaterialOut)
def get_material(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_or_404(db, material_id)


# =========================
# CREATE / UPDATE / DELETE
# =========================
@router.post("", status_code=201)
def create_material(
    payload: material_schemas.MaterialCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    # New materials start empty; stock only arrives through stock entries
    material = Material(current_stock=0, **payload.model_dump())
    db.add(material)
    db.commit()
    db.refresh(material)

    write_log(db, user_id=current_user.id, action="MATERIAL_CREATE", resource="materials",
              resource_id=material.id, ip=client_ip(request), meta={"name": material.name})
    return {"id": material.id, "message": "Material criado com sucesso"}


@router.put("/{material_id}")
def update_material(
    material_id: int,
    payload: material_schemas.MaterialUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    material = _get_or_404(db, material_id)
    for key, value in payload.model_dump().items():
        setattr(material, key, value)
    db.commit()

    write_log(db, user_id=current_user.id, action="MATERIAL_UPDATE", resource="materials",
              resource_id=material_id, ip=client_ip(request))
    return {"message": "Material atualizado com sucesso"}


@router.delete("/{material_id}")
def delete_material(
    material_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    material = _get_or_404(db, material_id)

    # Materials with movement history stay, the history must remain readable
    used_in_requests = db.query(RequestItem).filter(RequestItem.material_id == material_id).count()
    used_in_entries = db.query(StockEntry).filter(StockEntry.material_id == material_id).count()
    moved = db.query(StockMovement).filter(StockMovement.material_id == material_id).count()
    if used_in_requests or used_in_entries or moved:
        raise HTTPException(
            status_code=400,
            detail="Não é possível excluir material que possui histórico de movimentação",
        )

    db.delete(material)
    db.commit()

    write_log(db, user_id=current_user.id, action="MATERIAL_DELETE", resource="materials",
              resource_id=material_id, ip=client_ip(request))
    return {"message": "Material excluído com sucesso"}
