# backend/routes/dashboard.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import extract
from datetime import datetime, timedelta, timezone
from pydantic import BaseModel

from database import get_db
from utils.tokenJWT import get_current_user
from models.users import User
from models.material import Material
from models.request import Request, RequestStatus
from models.stock_entry import StockEntry

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"]
)

# Window for the "recent entries" counter
RECENT_ENTRIES_DAYS = 7

# === Pydantic Response Schemas ===

class DashboardStats(BaseModel):
    total_materials: int
    pending_requests: int
    low_stock_items: int
    total_users: int
    recent_entries: int
    monthly_requests: int


# Counters for the home screen. Requesters only count their own requests;
# stock counters are staff-only and the user count is admin-only (0 otherwise).
@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    now = datetime.now(timezone.utc)

    requests_q = db.query(Request)
    if not current_user.is_staff:
        requests_q = requests_q.filter(Request.requester_id == current_user.id)

    pending_requests = requests_q.filter(Request.status == RequestStatus.pendente).count()

    # Requests created in the current month
    monthly_requests = requests_q.filter(
        extract('month', Request.created_at) == now.month,
        extract('year', Request.created_at) == now.year
    ).count()

    low_stock_items = 0
    recent_entries = 0
    if current_user.is_staff:
        low_stock_items = db.query(Material).filter(
            Material.current_stock <= Material.min_stock
        ).count()

        since = now - timedelta(days=RECENT_ENTRIES_DAYS)
        recent_entries = db.query(StockEntry).filter(StockEntry.created_at >= since).count()

    total_users = db.query(User).count() if current_user.is_admin else 0

    return DashboardStats(
        total_materials=db.query(Material).count(),
        pending_requests=pending_requests,
        low_stock_items=low_stock_items,
        total_users=total_users,
        recent_entries=recent_entries,
        monthly_requests=monthly_requests,
    )
