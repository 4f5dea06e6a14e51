# backend/schemas/stock.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional
from models.stock import MovementType, MovementReference

# Schema for returning stock movement details
class StockMovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    material_name: str
    quantity: int
    type: MovementType
    reason: Optional[str] = None
    reference_type: MovementReference
    reference_id: Optional[int] = None
    user_id: int
    user_name: str
    created_at: datetime

# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementResponse]
    total: int
    page: int
    page_size: int
