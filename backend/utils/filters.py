from datetime import datetime
from typing import Optional


def _parse(value: str, end_of_day: bool = False) -> Optional[datetime]:
    # A bare YYYY-MM-DD used as an upper bound covers that whole day
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def apply_date_range(query, column, date_from: Optional[str] = None, date_to: Optional[str] = None):
    """Filter ``query`` on ``column`` between two ISO dates. Malformed dates are ignored."""
    start = _parse(date_from) if date_from else None
    end = _parse(date_to, end_of_day=True) if date_to else None
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query
