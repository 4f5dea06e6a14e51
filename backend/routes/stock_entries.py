# backend/routes/stock_entries.py
from typing import Optional, Literal
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.stock_entry import StockEntry
from utils.tokenJWT import require_staff, require_admin
from utils.audit import write_log, client_ip
from utils.filters import apply_date_range
from services import stock as ledger
from schemas.stock_entry import StockEntryCreate, StockEntryUpdate, StockEntryOut, StockEntryPage

router = APIRouter(prefix="/stock-entries", tags=["Stock entries"])


# Map StockEntry model to the output schema with related names
def _entry_to_out(entry: StockEntry) -> StockEntryOut:
    return StockEntryOut(
        id=entry.id,
        material_id=entry.material_id,
        material_name=entry.material.name if entry.material else None,
        material_unit=entry.material.unit if entry.material else None,
        supplier_id=entry.supplier_id,
        supplier_name=entry.supplier.name if entry.supplier else None,
        quantity=entry.quantity,
        unit_price=entry.unit_price,
        total_price=entry.total_price,
        batch=entry.batch,
        expiry_date=entry.expiry_date,
        notes=entry.notes,
        created_by=entry.created_by,
        created_by_name=entry.creator.name if entry.creator else None,
        created_at=entry.created_at,
    )


@router.get("", response_model=StockEntryPage)
def list_entries(
    material_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = db.query(StockEntry).options(
        joinedload(StockEntry.material), joinedload(StockEntry.supplier), joinedload(StockEntry.creator)
    )

    if material_id is not None:
        query = query.filter(StockEntry.material_id == material_id)
    if supplier_id is not None:
        query = query.filter(StockEntry.supplier_id == supplier_id)

    query = apply_date_range(query, StockEntry.created_at, date_from, date_to)

    col = StockEntry.created_at
    query = query.order_by(col.asc() if order == "asc" else col.desc(), StockEntry.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_entry_to_out(e) for e in items], "total": total, "page": page, "page_size": page_size}


@router.get("/{entry_id}", response_model=StockEntryOut)
def get_entry(entry_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    return _entry_to_out(ledger.get_entry(db, entry_id))


# Register a delivery: the entry row and the stock increase commit together
@router.post("", status_code=201)
def create_entry(
    payload: StockEntryCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(require_staff),
):
    entry = ledger.create_entry(db, payload.model_dump(), actor=current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="STOCK_ENTRY_CREATE", resource="stock_entries",
              resource_id=entry.id, ip=client_ip(request),
              meta={"material_id": entry.material_id, "quantity": entry.quantity})
    return {"id": entry.id, "message": "Entrada registrada com sucesso"}


@router.put("/{entry_id}")
def update_entry(
    entry_id: int, payload: StockEntryUpdate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(require_admin),
):
    changes = payload.model_dump(exclude_unset=True)
    entry = ledger.update_entry(db, entry_id, changes, actor=current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="STOCK_ENTRY_UPDATE", resource="stock_entries",
              resource_id=entry.id, ip=client_ip(request), meta={"changes": sorted(changes)})
    return {"message": "Entrada atualizada com sucesso"}


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(require_admin),
):
    ledger.delete_entry(db, entry_id, actor=current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="STOCK_ENTRY_DELETE", resource="stock_entries",
              resource_id=entry_id, ip=client_ip(request))
    return {"message": "Entrada excluída com sucesso"}
