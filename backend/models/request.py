import enum
from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Lifecycle states of a supply request
class RequestStatus(str, enum.Enum):
    pendente = "pendente"
    aprovado = "aprovado"
    rejeitado = "rejeitado"
    despachado = "despachado"
    cancelado = "cancelado"

# No transition leaves these states
TERMINAL_STATUSES = frozenset({RequestStatus.despachado, RequestStatus.rejeitado, RequestStatus.cancelado})

class RequestPriority(str, enum.Enum):
    baixa = "baixa"
    media = "media"
    alta = "alta"

# A solicitation for materials raised by a requester, subject to approval
class Request(Base):
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(RequestStatus), nullable=False, default=RequestStatus.pendente, index=True)
    priority = Column(Enum(RequestPriority), nullable=False, default=RequestPriority.media)
    notes = Column(Text, nullable=True)

    # Approval / dispatch trail
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    dispatched_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    requester = relationship("User", foreign_keys=[requester_id])
    approver = relationship("User", foreign_keys=[approved_by])
    dispatcher = relationship("User", foreign_keys=[dispatched_by])

    items = relationship(
        "RequestItem", back_populates="request", cascade="all, delete-orphan", order_by="RequestItem.id"
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

class RequestItem(Base):
    __tablename__ = "request_items"
    __table_args__ = (
        CheckConstraint("requested_quantity > 0", name="ck_request_items_requested_positive"),
        CheckConstraint(
            "approved_quantity IS NULL OR (approved_quantity >= 0 AND approved_quantity <= requested_quantity)",
            name="ck_request_items_approved_range",
        ),
        CheckConstraint(
            "dispatched_quantity IS NULL OR (dispatched_quantity >= 0 AND approved_quantity IS NOT NULL "
            "AND dispatched_quantity <= approved_quantity)",
            name="ck_request_items_dispatched_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("requests.id"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)

    requested_quantity = Column(Integer, nullable=False)
    approved_quantity = Column(Integer, nullable=True)
    dispatched_quantity = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    request = relationship("Request", back_populates="items")
    material = relationship("Material")
