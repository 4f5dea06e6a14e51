# backend/schemas/material.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, List, Literal


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared attributes; current_stock is deliberately absent, only the ledger moves it
class MaterialBase(ORMBase):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    min_stock: int = Field(default=0, ge=0)
    description: Optional[str] = None


class MaterialCreate(MaterialBase):
    pass


# PUT replaces the editable fields
class MaterialUpdate(MaterialBase):
    pass


class MaterialOut(MaterialBase):
    id: int
    current_stock: int
    stock_status: Literal["sem_estoque", "baixo", "normal"]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Lightweight row for the request form autocomplete
class MaterialSearchItem(ORMBase):
    id: int
    name: str
    unit: str
    current_stock: int


class MaterialPage(ORMBase):
    items: List[MaterialOut]
    total: int
    page: int
    page_size: int
