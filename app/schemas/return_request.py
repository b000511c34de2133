"""Pydantic schemas for return requests, QC and replacement shipment."""
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.return_request import ReturnReason, ReturnStatus
from app.schemas.base import BaseResponseSchema, BaseCreateSchema


# ==================== Request Schemas ====================

class ReturnItemCreate(BaseCreateSchema):
    product_id: UUID
    variant_id: Optional[str] = None
    quantity: int = Field(..., ge=1)
    condition: Optional[str] = None
    reason: Optional[ReturnReason] = None


class ReturnRequestCreate(BaseCreateSchema):
    """Customer return request against a delivered order."""
    order_id: UUID
    reason: ReturnReason
    description: Optional[str] = None
    evidence_images: Optional[List[str]] = None
    evidence_video: Optional[str] = None
    items: List[ReturnItemCreate] = Field(..., min_length=1)
    pickup_address: Optional[dict] = None


class ReturnStatusUpdate(BaseModel):
    status: ReturnStatus
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None


class ShipReplacementRequest(BaseModel):
    tracking_id: str = Field(..., min_length=1, max_length=100)


class VendorReturnDecision(BaseModel):
    notes: Optional[str] = None


class ReturnRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class QCChecklistSubmit(BaseModel):
    """
    Inspection result for returned goods.

    schema_version selects the grading rule:
    - BOX_INTEGRITY: fails when the brand box or the product is not intact
    - CONDITION: fails on physical damage, used goods or missing accessories
    """
    schema_version: str = "CONDITION"
    is_brand_box_intact: bool = True
    is_product_intact: bool = True
    is_original_packaging: bool = True
    is_unused: bool = True
    all_accessories_present: bool = True
    has_physical_damage: bool = False
    imei_match: Optional[bool] = None
    missing_accessories: List[str] = []
    images: List[str] = []
    notes: Optional[str] = None

    @field_validator("schema_version")
    @classmethod
    def normalize_version(cls, v: str) -> str:
        return v.strip().upper()


# ==================== Response Schemas ====================

class ReturnItemResponse(BaseResponseSchema):
    id: UUID
    product_id: UUID
    variant_id: Optional[str] = None
    quantity: int
    condition: Optional[str] = None
    reason: Optional[str] = None


class ReturnTimelineResponse(BaseResponseSchema):
    id: UUID
    status: str
    action: str
    performed_by: str
    actor_id: Optional[UUID] = None
    notes: Optional[str] = None
    timestamp: datetime


class ReplacementOrderResponse(BaseResponseSchema):
    id: UUID
    original_order_id: UUID
    return_id: UUID
    new_order_id: UUID
    created_at: datetime


class ReturnRequestResponse(BaseResponseSchema):
    id: UUID
    return_number: str
    user_id: UUID
    order_id: UUID
    vendor_id: Optional[UUID] = None
    reason: str
    description: Optional[str] = None
    evidence_images: Optional[List[str]] = None
    evidence_video: Optional[str] = None
    pickup_address: Optional[dict] = None
    status: str
    rejection_reason: Optional[str] = None
    replacement_tracking_id: Optional[str] = None
    requested_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    updated_at: datetime
    items: List[ReturnItemResponse] = []
    timeline: List[ReturnTimelineResponse] = []
    replacement: Optional[ReplacementOrderResponse] = None


class ReturnRequestListResponse(BaseResponseSchema):
    """Return summary for list views."""
    id: UUID
    return_number: str
    order_id: UUID
    vendor_id: Optional[UUID] = None
    reason: str
    status: str
    requested_at: datetime
    items_count: int = 0


class QCChecklistResponse(BaseResponseSchema):
    id: UUID
    order_id: UUID
    vendor_id: Optional[UUID] = None
    inspector_id: Optional[UUID] = None
    schema_version: str
    status: str
    missing_accessories: Optional[List[str]] = None
    notes: Optional[str] = None
    created_at: datetime


class VendorReturnStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    qc_failed: int
    replacement_shipped: int
    last_30_days: int
