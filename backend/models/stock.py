# backend/models/stock.py
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

class MovementType(str, enum.Enum):
    entrada = "entrada"
    saida = "saida"

# What caused the movement
class MovementReference(str, enum.Enum):
    entry = "entry"
    request = "request"
    adjustment = "adjustment"

# One row per change of Material.current_stock
class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Always positive; direction comes from type
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    type = Column(Enum(MovementType), nullable=False, index=True)

    reason = Column(String, nullable=True)
    reference_type = Column(Enum(MovementReference), nullable=False)
    reference_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    material = relationship("Material")
    user = relationship("User")
