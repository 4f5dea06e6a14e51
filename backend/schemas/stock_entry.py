from pydantic import BaseModel, Field, ConfigDict
from datetime import date, datetime
from typing import List, Optional


# Schema for registering a delivery
class StockEntryCreate(BaseModel):
    material_id: int
    supplier_id: int
    quantity: int = Field(gt=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    batch: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None


# Administrative edit, all fields optional
class StockEntryUpdate(BaseModel):
    material_id: Optional[int] = None
    supplier_id: Optional[int] = None
    quantity: Optional[int] = Field(default=None, gt=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    batch: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None


# Schema for returning an entry with the names the list view shows
class StockEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    material_name: Optional[str] = None
    material_unit: Optional[str] = None
    supplier_id: int
    supplier_name: Optional[str] = None
    quantity: int
    unit_price: Optional[float] = None
    total_price: float
    batch: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    created_by: int
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None


class StockEntryPage(BaseModel):
    items: List[StockEntryOut]
    total: int
    page: int
    page_size: int
