from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from models.request import RequestPriority, RequestStatus


# Input schema for a single requested line
class RequestItemIn(BaseModel):
    material_id: int
    # "quantity" is accepted as well, the request form sends it under that name
    requested_quantity: int = Field(gt=0, validation_alias=AliasChoices("requested_quantity", "quantity"))
    notes: Optional[str] = None


class RequestCreate(BaseModel):
    priority: RequestPriority = RequestPriority.media
    notes: Optional[str] = None
    items: List[RequestItemIn] = Field(min_length=1)


# Pending requests only; omitted fields stay unchanged
class RequestUpdate(BaseModel):
    priority: Optional[RequestPriority] = None
    notes: Optional[str] = None
    items: Optional[List[RequestItemIn]] = Field(default=None, min_length=1)


class ApprovedQuantity(BaseModel):
    item_id: int
    quantity: int = Field(ge=0)


# approved_by / dispatched_by are accepted for compatibility with older clients;
# the acting user always comes from the token.
class RequestApprove(BaseModel):
    approved_by: Optional[int] = None
    approved_quantities: List[ApprovedQuantity] = Field(min_length=1)


class RequestDispatch(BaseModel):
    dispatched_by: Optional[int] = None


class RequestReject(BaseModel):
    reason: str = Field(min_length=1)


class RequestCancel(BaseModel):
    reason: Optional[str] = None


# Output schema for an individual request line
class RequestItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    material_name: Optional[str] = None
    material_unit: Optional[str] = None
    requested_quantity: int
    approved_quantity: Optional[int] = None
    dispatched_quantity: Optional[int] = None
    notes: Optional[str] = None


# Row of the request list (summary, no items)
class RequestSummary(BaseModel):
    id: int
    status: RequestStatus
    priority: RequestPriority
    requester_id: int
    requester_name: Optional[str] = None
    school: Optional[str] = None
    approver_name: Optional[str] = None
    dispatcher_name: Optional[str] = None
    items_count: int
    total_requested: int
    total_dispatched: int
    created_at: Optional[datetime] = None


# Output schema representing the full request details
class RequestDetail(BaseModel):
    id: int
    status: RequestStatus
    priority: RequestPriority
    notes: Optional[str] = None
    requester_id: int
    requester_name: Optional[str] = None
    school: Optional[str] = None
    approved_by: Optional[int] = None
    approver_name: Optional[str] = None
    approved_at: Optional[datetime] = None
    dispatched_by: Optional[int] = None
    dispatcher_name: Optional[str] = None
    dispatched_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[RequestItemOut]


class RequestPage(BaseModel):
    items: List[RequestSummary]
    total: int
    page: int
    page_size: int
