from sqlalchemy import Column, Integer, String, Float, Date, Text, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# A delivery of a material from a supplier; adds its quantity to the material's stock
class StockEntry(Base):
    __tablename__ = "stock_entries"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)

    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    unit_price = Column(Float, CheckConstraint("unit_price IS NULL OR unit_price >= 0"), nullable=True)

    # Batch / expiry metadata
    batch = Column(String, nullable=True)
    expiry_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    material = relationship("Material")
    supplier = relationship("Supplier")
    creator = relationship("User")

    @property
    def total_price(self) -> float:
        return round(self.quantity * (self.unit_price or 0), 2)
