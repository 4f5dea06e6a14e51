from pydantic import BaseModel, ConfigDict
from typing import Any, List, Optional
from datetime import datetime


# One audit row, with the acting user's name resolved
class LogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ts: Optional[datetime] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    action: str
    resource: str
    resource_id: Optional[int] = None
    status: str
    ip: Optional[str] = None
    meta: Optional[Any] = None


class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int
