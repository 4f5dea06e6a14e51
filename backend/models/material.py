# backend/models/material.py
from sqlalchemy import Column, Integer, String, Text, DateTime, CheckConstraint, func
from database import Base

# Model Material
# A trackable supply item with its unit of measure.
# current_stock is owned by the stock ledger (services/stock.py):
# entries add to it, dispatched requests subtract from it.
class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    unit = Column(String, nullable=False)

    # Stock counters, guarded by constraints as a last line against negatives.
    current_stock = Column(Integer, CheckConstraint("current_stock >= 0"), nullable=False, default=0)
    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=0)

    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def stock_status(self) -> str:
        if (self.current_stock or 0) == 0:
            return "sem_estoque"
        if self.current_stock <= (self.min_stock or 0):
            return "baixo"
        return "normal"
