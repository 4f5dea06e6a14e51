# backend/routes/stock_movements.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload
from typing import Optional, Literal

from database import get_db
from models.stock import StockMovement, MovementType, MovementReference
from models.material import Material
from models.users import User
from utils.tokenJWT import require_staff
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock-movements", tags=["Stock"])


# Read-only view of the stock ledger
@router.get("", response_model=stock_schemas.StockMovementPage)
def list_movements(
    q: Optional[str] = Query(None, description="Busca pelo nome do material"),
    material_id: Optional[int] = Query(None),
    type: Optional[MovementType] = Query(None),
    reference_type: Optional[MovementReference] = Query(None),
    reference_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    query = (
        db.query(StockMovement)
        .join(Material, Material.id == StockMovement.material_id)
        .options(joinedload(StockMovement.material), joinedload(StockMovement.user))
    )

    if q:
        query = query.filter(Material.name.ilike(f"%{q}%"))
    if material_id is not None:
        query = query.filter(StockMovement.material_id == material_id)
    if type:
        query = query.filter(StockMovement.type == type)
    if reference_type:
        query = query.filter(StockMovement.reference_type == reference_type)
    if reference_id is not None:
        query = query.filter(StockMovement.reference_id == reference_id)

    if order == "desc":
        query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    else:
        query = query.order_by(StockMovement.created_at.asc(), StockMovement.id.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    results = []
    for m in items:
        results.append({
            "id": m.id,
            "material_id": m.material_id,
            "material_name": m.material.name if m.material else "Desconhecido",
            "quantity": m.quantity,
            "type": m.type,
            "reason": m.reason,
            "reference_type": m.reference_type,
            "reference_id": m.reference_id,
            "user_id": m.user_id,
            "user_name": m.user.name if m.user else "Sistema",
            "created_at": m.created_at,
        })

    return {"items": results, "total": total, "page": page, "page_size": page_size}
