"""Stock ledger.

Material.current_stock is a single counter per material. It only changes here:

    current_stock += quantity    stock entry created
    current_stock -= quantity    stock entry deleted / reduced, request dispatched

Every change writes a StockMovement row. Functions only flush; the caller owns
the transaction and commits once all checks have passed, so a failed check
leaves nothing behind.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.material import Material
from models.supplier import Supplier
from models.stock_entry import StockEntry
from models.stock import StockMovement, MovementType, MovementReference
from models.users import User
from services.errors import (
    BusinessRuleError,
    InsufficientStockError,
    NotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ("material_id", "supplier_id", "quantity", "unit_price", "batch", "expiry_date", "notes")


def lock_materials(db: Session, material_ids: Iterable[int]) -> dict[int, Material]:
    """
    Load materials with SELECT ... FOR UPDATE, in id order so that two
    transactions touching the same materials always lock them in the same order.
    """
    ids = sorted({int(mid) for mid in material_ids if mid is not None})
    if not ids:
        return {}

    rows = db.execute(
        select(Material).where(Material.id.in_(ids)).order_by(Material.id.asc()).with_for_update()
        .execution_options(populate_existing=True)
    ).scalars().all()
    return {m.id: m for m in rows}


def shortage(material: Material, required: int, available: Optional[int] = None) -> dict:
    return {
        "material_id": material.id,
        "name": material.name,
        "available": material.current_stock if available is None else available,
        "required": required,
    }


def record_movement(
    db: Session,
    *,
    material: Material,
    quantity: int,
    type: MovementType,
    actor: User,
    reference_type: MovementReference,
    reference_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> StockMovement:
    movement = StockMovement(
        material_id=material.id,
        user_id=actor.id,
        quantity=quantity,
        type=type,
        reference_type=reference_type,
        reference_id=reference_id,
        reason=reason,
    )
    db.add(movement)
    return movement


def increase_stock(db: Session, material: Material, quantity: int, *, actor: User,
                   reference_type: MovementReference, reference_id: Optional[int] = None,
                   reason: Optional[str] = None) -> None:
    if quantity <= 0:
        return
    material.current_stock = (material.current_stock or 0) + quantity
    record_movement(
        db, material=material, quantity=quantity, type=MovementType.entrada, actor=actor,
        reference_type=reference_type, reference_id=reference_id, reason=reason,
    )


def decrease_stock(db: Session, material: Material, quantity: int, *, actor: User,
                   reference_type: MovementReference, reference_id: Optional[int] = None,
                   reason: Optional[str] = None) -> None:
    if quantity <= 0:
        return
    if (material.current_stock or 0) < quantity:
        raise InsufficientStockError([shortage(material, quantity)])
    material.current_stock -= quantity
    record_movement(
        db, material=material, quantity=quantity, type=MovementType.saida, actor=actor,
        reference_type=reference_type, reference_id=reference_id, reason=reason,
    )


# ---- stock entries ----

def _require_staff(actor: User) -> None:
    if not actor.is_staff:
        raise PermissionDeniedError("Acesso negado")


def _require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError("Somente administradores podem alterar entradas de estoque")


def _check_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if supplier is None:
        raise BusinessRuleError(f"Fornecedor {supplier_id} não encontrado")
    return supplier


def get_entry(db: Session, entry_id: int) -> StockEntry:
    entry = db.get(StockEntry, entry_id)
    if entry is None:
        raise NotFoundError("Entrada de estoque não encontrada")
    return entry


def _load_entry_for_update(db: Session, entry_id: int) -> StockEntry:
    entry = db.execute(
        select(StockEntry).where(StockEntry.id == entry_id).with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Entrada de estoque não encontrada")
    return entry


def create_entry(db: Session, data: dict, *, actor: User) -> StockEntry:
    _require_staff(actor)

    quantity = int(data.get("quantity") or 0)
    if quantity <= 0:
        raise BusinessRuleError("A quantidade deve ser maior que zero")

    materials = lock_materials(db, [data["material_id"]])
    material = materials.get(data["material_id"])
    if material is None:
        raise BusinessRuleError(f"Material {data['material_id']} não encontrado")
    _check_supplier(db, data["supplier_id"])

    entry = StockEntry(created_by=actor.id, **{k: data.get(k) for k in ENTRY_FIELDS})
    db.add(entry)
    db.flush()

    increase_stock(
        db, material, quantity, actor=actor,
        reference_type=MovementReference.entry, reference_id=entry.id, reason="Entrada de estoque",
    )
    db.flush()
    logger.info("Stock entry %s: material %s +%s -> %s", entry.id, material.id, quantity, material.current_stock)
    return entry


def update_entry(db: Session, entry_id: int, changes: dict, *, actor: User) -> StockEntry:
    """Administrative edit. Quantity or material changes are applied to stock as a delta."""
    _require_admin(actor)
    entry = _load_entry_for_update(db, entry_id)

    new_material_id = changes.get("material_id")
    if new_material_id is None:
        new_material_id = entry.material_id
    new_quantity = changes.get("quantity")
    if new_quantity is None:
        new_quantity = entry.quantity
    if new_quantity <= 0:
        raise BusinessRuleError("A quantidade deve ser maior que zero")
    if changes.get("supplier_id") is not None:
        _check_supplier(db, changes["supplier_id"])

    materials = lock_materials(db, [entry.material_id, new_material_id])
    old_material = materials[entry.material_id]
    new_material = materials.get(new_material_id)
    if new_material is None:
        raise BusinessRuleError(f"Material {new_material_id} não encontrado")

    reason = f"Ajuste da entrada #{entry.id}"
    if new_material.id != old_material.id:
        # Move the whole quantity from one material to the other
        decrease_stock(db, old_material, entry.quantity, actor=actor,
                       reference_type=MovementReference.adjustment, reference_id=entry.id, reason=reason)
        increase_stock(db, new_material, new_quantity, actor=actor,
                       reference_type=MovementReference.adjustment, reference_id=entry.id, reason=reason)
    else:
        delta = new_quantity - entry.quantity
        if delta > 0:
            increase_stock(db, old_material, delta, actor=actor,
                           reference_type=MovementReference.adjustment, reference_id=entry.id, reason=reason)
        elif delta < 0:
            decrease_stock(db, old_material, -delta, actor=actor,
                           reference_type=MovementReference.adjustment, reference_id=entry.id, reason=reason)

    for key in ENTRY_FIELDS:
        if key in changes and changes[key] is not None:
            setattr(entry, key, changes[key])
    entry.material_id = new_material.id
    entry.quantity = new_quantity

    db.flush()
    return entry


def delete_entry(db: Session, entry_id: int, *, actor: User) -> None:
    """
    Remove an entry and take its quantity back out of stock.
    Refused when the material no longer holds that many units.
    """
    _require_admin(actor)
    entry = _load_entry_for_update(db, entry_id)
    material = lock_materials(db, [entry.material_id])[entry.material_id]

    if material.current_stock < entry.quantity:
        raise InsufficientStockError([shortage(material, entry.quantity)])

    decrease_stock(
        db, material, entry.quantity, actor=actor,
        reference_type=MovementReference.adjustment, reference_id=entry.id,
        reason=f"Exclusão da entrada #{entry.id}",
    )
    db.delete(entry)
    db.flush()
    logger.info("Stock entry %s deleted: material %s -%s -> %s", entry_id, material.id, entry.quantity, material.current_stock)
