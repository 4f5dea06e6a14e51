# backend/routes/logs.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.log import Log
from models.users import User
from utils.tokenJWT import require_admin
from utils.filters import apply_date_range
from schemas.log import LogPage, LogResponse

router = APIRouter(prefix="/logs", tags=["Logs"])


def _log_to_out(log: Log) -> LogResponse:
    return LogResponse(
        id=log.id,
        ts=log.ts,
        user_id=log.user_id,
        user_name=log.user.name if log.user else None,
        action=log.action,
        resource=log.resource,
        resource_id=log.resource_id,
        status=log.status,
        ip=log.ip,
        meta=log.meta,
    )


# Audit trail browser (Admin only): who approved, dispatched or deleted what
@router.get("", response_model=LogPage)
def list_logs(
    action: Optional[str] = Query(None, description="e.g. REQUEST_APPROVE"),
    resource: Optional[str] = Query(None, description="e.g. requests, stock_entries"),
    resource_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="SUCCESS / FAIL"),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(Log).options(joinedload(Log.user))

    if action: query = query.filter(Log.action.ilike(f"%{action}%"))
    if resource: query = query.filter(Log.resource.ilike(f"%{resource}%"))
    if resource_id is not None: query = query.filter(Log.resource_id == resource_id)
    if user_id is not None: query = query.filter(Log.user_id == user_id)
    if status: query = query.filter(Log.status == status.upper())

    query = apply_date_range(query, Log.ts, date_from, date_to)
    query = query.order_by(Log.ts.desc(), Log.id.desc())

    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_log_to_out(r) for r in rows], "total": total, "page": page, "page_size": page_size}
