"""Request lifecycle.

    pendente --approve--> aprovado --dispatch--> despachado
        |                     |
        +--reject/cancel------+--> rejeitado / cancelado

despachado, rejeitado and cancelado are terminal.

Every operation receives the acting user explicitly (``actor``) and only
flushes; the caller commits. All validation, including the stock checks,
happens before the first attribute is written, so a refused approval or
dispatch leaves the request and its items exactly as they were.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models.material import Material
from models.request import Request, RequestItem, RequestPriority, RequestStatus
from models.stock import MovementReference
from models.users import User
from services.errors import (
    BusinessRuleError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from services.stock import decrease_stock, lock_materials, shortage

logger = logging.getLogger(__name__)

REJECTABLE = (RequestStatus.pendente, RequestStatus.aprovado)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _append_note(notes: Optional[str], line: str) -> str:
    return f"{notes}\n{line}" if notes else line


def _require_staff(actor: User, action: str) -> None:
    if not actor.is_staff:
        raise PermissionDeniedError(f"Somente despachantes ou administradores podem {action} solicitações")


def _require_status(req: Request, allowed: Iterable[RequestStatus], action: str) -> None:
    if req.is_terminal:
        raise InvalidTransitionError(
            f"Não é possível {action} a solicitação #{req.id}: ela já foi encerrada como '{req.status.value}'"
        )
    allowed = tuple(allowed)
    if req.status not in allowed:
        expected = " ou ".join(s.value for s in allowed)
        raise InvalidTransitionError(
            f"Não é possível {action} a solicitação #{req.id}: status atual '{req.status.value}', esperado {expected}"
        )


def _load_for_update(db: Session, request_id: int) -> Request:
    # populate_existing: the locked row wins over whatever the session already holds
    req = db.execute(
        select(Request).where(Request.id == request_id).with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if req is None:
        raise NotFoundError("Solicitação não encontrada")
    return req


def _build_items(db: Session, items: list[dict]) -> list[RequestItem]:
    if not items:
        raise BusinessRuleError("A solicitação deve conter ao menos um item")

    seen = set()
    for it in items:
        if it["material_id"] in seen:
            raise BusinessRuleError(f"Material {it['material_id']} repetido na solicitação")
        seen.add(it["material_id"])
        if int(it["requested_quantity"]) <= 0:
            raise BusinessRuleError("A quantidade solicitada deve ser maior que zero")

    found = set(db.execute(select(Material.id).where(Material.id.in_(seen))).scalars().all())
    missing = sorted(seen - found)
    if missing:
        raise BusinessRuleError(f"Materiais não encontrados: {', '.join(str(m) for m in missing)}")

    return [
        RequestItem(
            material_id=it["material_id"],
            requested_quantity=int(it["requested_quantity"]),
            notes=it.get("notes"),
        )
        for it in items
    ]


def outstanding_approved(db: Session, material_ids: Iterable[int], exclude_request_id: Optional[int] = None) -> dict[int, int]:
    """
    Units already promised by requests that are approved but not yet dispatched,
    per material. Computed from the live rows; nothing is stored.
    """
    ids = list({int(m) for m in material_ids})
    if not ids:
        return {}

    query = (
        select(RequestItem.material_id, func.coalesce(func.sum(RequestItem.approved_quantity), 0))
        .join(Request, Request.id == RequestItem.request_id)
        .where(Request.status == RequestStatus.aprovado)
        .where(RequestItem.material_id.in_(ids))
        .group_by(RequestItem.material_id)
    )
    if exclude_request_id is not None:
        query = query.where(Request.id != exclude_request_id)

    return {mid: int(total) for mid, total in db.execute(query).all()}


# ---- reads ----

def get_request(db: Session, request_id: int, *, actor: User) -> Request:
    req = db.get(Request, request_id)
    if req is None:
        raise NotFoundError("Solicitação não encontrada")
    if not actor.is_staff and req.requester_id != actor.id:
        raise PermissionDeniedError("Você só pode visualizar as suas próprias solicitações")
    return req


# ---- writes ----

def create_request(db: Session, *, actor: User, items: list[dict],
                   priority: RequestPriority = RequestPriority.media, notes: Optional[str] = None) -> Request:
    req = Request(
        requester_id=actor.id,
        status=RequestStatus.pendente,
        priority=RequestPriority(priority),
        notes=notes,
        items=_build_items(db, items),
    )
    db.add(req)
    db.flush()
    logger.info("Request %s created by user %s with %s item(s)", req.id, actor.id, len(req.items))
    return req


def update_request(db: Session, request_id: int, *, actor: User, priority: Optional[RequestPriority] = None,
                   notes: Optional[str] = None, items: Optional[list[dict]] = None) -> Request:
    """Edit a pending request. Only its owner or an administrator may do this."""
    req = _load_for_update(db, request_id)
    if req.requester_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("Você só pode editar as suas próprias solicitações")
    _require_status(req, [RequestStatus.pendente], "editar")

    new_items = _build_items(db, items) if items is not None else None

    if priority is not None:
        req.priority = RequestPriority(priority)
    if notes is not None:
        req.notes = notes
    if new_items is not None:
        req.items = new_items

    db.flush()
    return req


def approve_request(db: Session, request_id: int, *, actor: User, quantities: list[dict]) -> Request:
    """
    pendente -> aprovado.

    ``quantities`` is a list of {"item_id", "quantity"} and must cover every item
    of the request. Each quantity must lie in [0, requested_quantity], and for
    every material the approved total must fit in current_stock minus what other
    approved requests already hold. Any failure aborts the whole approval.

    Approval subtracts what other aprovado requests are still waiting for.
    dispatch_request checks the bare current_stock instead: the units it removes
    are the ones this approval promised, so they are not subtracted twice.
    """
    _require_staff(actor, "aprovar")
    req = _load_for_update(db, request_id)
    _require_status(req, [RequestStatus.pendente], "aprovar")

    items_by_id = {it.id: it for it in req.items}
    approved: dict[int, int] = {}
    for q in quantities:
        item_id, quantity = int(q["item_id"]), int(q["quantity"])
        if item_id not in items_by_id:
            raise BusinessRuleError(f"Item {item_id} não pertence à solicitação #{req.id}")
        if item_id in approved:
            raise BusinessRuleError(f"Item {item_id} informado mais de uma vez")
        item = items_by_id[item_id]
        if quantity < 0 or quantity > item.requested_quantity:
            raise BusinessRuleError(
                f"Quantidade aprovada do item {item_id} deve estar entre 0 e {item.requested_quantity}"
            )
        approved[item_id] = quantity

    missing = sorted(set(items_by_id) - set(approved))
    if missing:
        raise BusinessRuleError(f"Informe a quantidade aprovada dos itens: {', '.join(str(i) for i in missing)}")
    if not any(approved.values()):
        raise BusinessRuleError("Nenhuma quantidade aprovada; use a rejeição para recusar a solicitação")

    required: dict[int, int] = defaultdict(int)
    for item_id, quantity in approved.items():
        required[items_by_id[item_id].material_id] += quantity

    materials = lock_materials(db, required)
    reserved = outstanding_approved(db, required, exclude_request_id=req.id)

    short = []
    for material_id, needed in sorted(required.items()):
        material = materials[material_id]
        available = material.current_stock - reserved.get(material_id, 0)
        if needed > available:
            short.append(shortage(material, needed, available=max(available, 0)))
    if short:
        logger.warning("Approval of request %s refused, insufficient stock: %s", req.id, short)
        raise InsufficientStockError(short)

    for item_id, quantity in approved.items():
        items_by_id[item_id].approved_quantity = quantity
    req.status = RequestStatus.aprovado
    req.approved_by = actor.id
    req.approved_at = _now()

    db.flush()
    logger.info("Request %s approved by user %s", req.id, actor.id)
    return req


def dispatch_request(db: Session, request_id: int, *, actor: User) -> Request:
    """
    aprovado -> despachado.

    Stock is checked again against the live current_stock (it may have moved
    since approval); then every item gets dispatched_quantity = approved_quantity
    and its material is decremented by that amount.
    """
    _require_staff(actor, "despachar")
    req = _load_for_update(db, request_id)
    _require_status(req, [RequestStatus.aprovado], "despachar")

    required: dict[int, int] = defaultdict(int)
    for item in req.items:
        required[item.material_id] += item.approved_quantity or 0

    materials = lock_materials(db, required)
    short = [
        shortage(materials[mid], needed)
        for mid, needed in sorted(required.items())
        if needed > materials[mid].current_stock
    ]
    if short:
        logger.warning("Dispatch of request %s refused, insufficient stock: %s", req.id, short)
        raise InsufficientStockError(short)

    for item in req.items:
        quantity = item.approved_quantity or 0
        decrease_stock(
            db, materials[item.material_id], quantity, actor=actor,
            reference_type=MovementReference.request, reference_id=req.id,
            reason=f"Despacho da solicitação #{req.id}",
        )
        item.dispatched_quantity = quantity

    req.status = RequestStatus.despachado
    req.dispatched_by = actor.id
    req.dispatched_at = _now()

    db.flush()
    logger.info("Request %s dispatched by user %s", req.id, actor.id)
    return req


def reject_request(db: Session, request_id: int, *, actor: User, reason: str) -> Request:
    _require_staff(actor, "rejeitar")
    reason = (reason or "").strip()
    if not reason:
        raise BusinessRuleError("Informe o motivo da rejeição")

    req = _load_for_update(db, request_id)
    _require_status(req, REJECTABLE, "rejeitar")

    req.status = RequestStatus.rejeitado
    req.notes = _append_note(req.notes, f"Motivo da rejeição: {reason}")
    db.flush()
    logger.info("Request %s rejected by user %s", req.id, actor.id)
    return req


def cancel_request(db: Session, request_id: int, *, actor: User, reason: Optional[str] = None) -> Request:
    """Owners may cancel while pending; staff may also cancel approved requests."""
    req = _load_for_update(db, request_id)
    if actor.is_staff:
        _require_status(req, REJECTABLE, "cancelar")
    elif req.requester_id == actor.id:
        _require_status(req, [RequestStatus.pendente], "cancelar")
    else:
        raise PermissionDeniedError("Você só pode cancelar as suas próprias solicitações")

    req.status = RequestStatus.cancelado
    if reason and reason.strip():
        req.notes = _append_note(req.notes, f"Cancelada: {reason.strip()}")
    db.flush()
    return req
