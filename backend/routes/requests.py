# backend/routes/requests.py
from typing import List, Optional, Literal
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.users import User
from models.request import Request as SupplyRequest, RequestItem, RequestStatus, RequestPriority
from utils.tokenJWT import get_current_user, require_staff
from utils.audit import write_log, client_ip
from services import requests as lifecycle
from schemas.request import (
    RequestCreate, RequestUpdate, RequestApprove, RequestDispatch, RequestReject, RequestCancel,
    RequestDetail, RequestItemOut, RequestPage, RequestSummary,
)

router = APIRouter(prefix="/requests", tags=["Requests"])


def _name(user: Optional[User]) -> Optional[str]:
    return user.name if user else None


# Map Request model to the list row
def _request_to_summary(req: SupplyRequest) -> RequestSummary:
    return RequestSummary(
        id=req.id,
        status=req.status,
        priority=req.priority,
        requester_id=req.requester_id,
        requester_name=_name(req.requester),
        school=req.requester.school if req.requester else None,
        approver_name=_name(req.approver),
        dispatcher_name=_name(req.dispatcher),
        items_count=len(req.items),
        total_requested=sum(it.requested_quantity for it in req.items),
        total_dispatched=sum(it.dispatched_quantity or 0 for it in req.items),
        created_at=req.created_at,
    )

# Map Request model to the detail schema, items included
def _request_to_detail(req: SupplyRequest) -> RequestDetail:
    items: List[RequestItemOut] = []
    for it in req.items:
        items.append(RequestItemOut(
            id=it.id,
            material_id=it.material_id,
            material_name=it.material.name if it.material else None,
            material_unit=it.material.unit if it.material else None,
            requested_quantity=it.requested_quantity,
            approved_quantity=it.approved_quantity,
            dispatched_quantity=it.dispatched_quantity,
            notes=it.notes,
        ))
    return RequestDetail(
        id=req.id,
        status=req.status,
        priority=req.priority,
        notes=req.notes,
        requester_id=req.requester_id,
        requester_name=_name(req.requester),
        school=req.requester.school if req.requester else None,
        approved_by=req.approved_by,
        approver_name=_name(req.approver),
        approved_at=req.approved_at,
        dispatched_by=req.dispatched_by,
        dispatcher_name=_name(req.dispatcher),
        dispatched_at=req.dispatched_at,
        created_at=req.created_at,
        updated_at=req.updated_at,
        items=items,
    )


# =========================
# LIST / DETAIL
# =========================
@router.get("", response_model=RequestPage)
def list_requests(
    status: Optional[List[RequestStatus]] = Query(None),
    priority: Optional[RequestPriority] = Query(None),
    requester_id: Optional[int] = Query(None),
    material_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: Literal["created_at", "status", "priority", "id"] = "created_at",
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(SupplyRequest).options(
        selectinload(SupplyRequest.items),
        selectinload(SupplyRequest.requester),
        selectinload(SupplyRequest.approver),
        selectinload(SupplyRequest.dispatcher),
    )

    # Requesters only ever see their own requests
    if not current_user.is_staff:
        query = query.filter(SupplyRequest.requester_id == current_user.id)
    elif requester_id is not None:
        query = query.filter(SupplyRequest.requester_id == requester_id)

    if status:
        query = query.filter(SupplyRequest.status.in_(status))
    if priority:
        query = query.filter(SupplyRequest.priority == priority)
    if material_id is not None:
        query = query.filter(SupplyRequest.items.any(RequestItem.material_id == material_id))

    sort_map = {
        "created_at": SupplyRequest.created_at,
        "status": SupplyRequest.status,
        "priority": SupplyRequest.priority,
        "id": SupplyRequest.id,
    }
    col = sort_map.get(sort_by, SupplyRequest.created_at)
    query = query.order_by(col.asc() if order == "asc" else col.desc(), SupplyRequest.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_request_to_summary(r) for r in items], "total": total, "page": page, "page_size": page_size}


@router.get("/{request_id}", response_model=RequestDetail)
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _request_to_detail(lifecycle.get_request(db, request_id, actor=current_user))


# =========================
# CREATE / EDIT
# =========================
@router.post("", status_code=201)
def create_request(
    payload: RequestCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    req = lifecycle.create_request(
        db,
        actor=current_user,
        priority=payload.priority,
        notes=payload.notes,
        items=[it.model_dump() for it in payload.items],
    )
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_CREATE", resource="requests",
              resource_id=req.id, ip=client_ip(request), meta={"items": len(payload.items)})
    return {"id": req.id, "message": "Solicitação criada com sucesso"}


@router.put("/{request_id}")
def update_request(
    request_id: int,
    payload: RequestUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lifecycle.update_request(
        db, request_id,
        actor=current_user,
        priority=payload.priority,
        notes=payload.notes,
        items=[it.model_dump() for it in payload.items] if payload.items is not None else None,
    )
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_UPDATE", resource="requests",
              resource_id=request_id, ip=client_ip(request))
    return {"message": "Solicitação atualizada com sucesso"}


# =========================
# WORKFLOW
# =========================
@router.put("/{request_id}/approve")
def approve_request(
    request_id: int,
    payload: RequestApprove,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    quantities = [q.model_dump() for q in payload.approved_quantities]
    lifecycle.approve_request(db, request_id, actor=current_user, quantities=quantities)
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_APPROVE", resource="requests",
              resource_id=request_id, ip=client_ip(request), meta={"approved_quantities": quantities})
    return {"message": "Solicitação aprovada com sucesso"}


@router.put("/{request_id}/dispatch")
def dispatch_request(
    request_id: int,
    request: Request,
    payload: Optional[RequestDispatch] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    req = lifecycle.dispatch_request(db, request_id, actor=current_user)
    dispatched = {it.material_id: it.dispatched_quantity for it in req.items}
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_DISPATCH", resource="requests",
              resource_id=request_id, ip=client_ip(request), meta={"dispatched": dispatched})
    return {"message": "Solicitação despachada com sucesso"}


@router.put("/{request_id}/reject")
def reject_request(
    request_id: int,
    payload: RequestReject,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    lifecycle.reject_request(db, request_id, actor=current_user, reason=payload.reason)
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_REJECT", resource="requests",
              resource_id=request_id, ip=client_ip(request), meta={"reason": payload.reason})
    return {"message": "Solicitação rejeitada"}


@router.put("/{request_id}/cancel")
def cancel_request(
    request_id: int,
    request: Request,
    payload: Optional[RequestCancel] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reason = payload.reason if payload else None
    lifecycle.cancel_request(db, request_id, actor=current_user, reason=reason)
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_CANCEL", resource="requests",
              resource_id=request_id, ip=client_ip(request), meta={"reason": reason})
    return {"message": "Solicitação cancelada"}
