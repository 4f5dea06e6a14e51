# backend/routes/suppliers.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.supplier import Supplier
from models.stock_entry import StockEntry
from utils.tokenJWT import require_staff
from utils.audit import write_log, client_ip
from schemas.supplier import SupplierIn, SupplierOut, SupplierPage

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])

# Supplier registry, managed by dispatchers and administrators


def _get_or_404(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise HTTPException(status_code=404, detail="Fornecedor não encontrado")
    return supplier


@router.get("", response_model=SupplierPage)
def list_suppliers(
    q: Optional[str] = Query(None, description="Busca por nome"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = db.query(Supplier)
    if q:
        query = query.filter(Supplier.name.ilike(f"%{q}%"))
    query = query.order_by(Supplier.name.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    return _get_or_404(db, supplier_id)


@router.post("", status_code=201)
def create_supplier(
    payload: SupplierIn, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(require_staff),
):
    supplier = Supplier(**payload.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)

    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers",
              resource_id=supplier.id, ip=client_ip(request), meta={"name": supplier.name})
    return {"id": supplier.id, "message": "Fornecedor criado com sucesso"}


@router.put("/{supplier_id}")
def update_supplier(
    supplier_id: int, payload: SupplierIn, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(require_staff),
):
    supplier = _get_or_404(db, supplier_id)
    for key, value in payload.model_dump().items():
        setattr(supplier, key, value)
    db.commit()

    write_log(db, user_id=current_user.id, action="SUPPLIER_UPDATE", resource="suppliers",
              resource_id=supplier_id, ip=client_ip(request))
    return {"message": "Fornecedor atualizado com sucesso"}


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(require_staff),
):
    supplier = _get_or_404(db, supplier_id)

    if db.query(StockEntry).filter(StockEntry.supplier_id == supplier_id).count():
        raise HTTPException(
            status_code=400,
            detail="Não é possível excluir fornecedor com entradas de estoque registradas",
        )

    db.delete(supplier)
    db.commit()

    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers",
              resource_id=supplier_id, ip=client_ip(request))
    return {"message": "Fornecedor excluído com sucesso"}
