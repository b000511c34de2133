"""Pydantic schemas for refund reads and the audited override."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.refund import RefundMethod
from app.schemas.base import BaseResponseSchema


class RefundCreateRequest(BaseModel):
    """Direct refund request. Always rejected by policy."""
    order_id: UUID
    amount: Optional[Decimal] = None
    method: RefundMethod = RefundMethod.ORIGINAL_PAYMENT
    reason: Optional[str] = None
    force_refund: bool = False


class RefundOverrideRequest(BaseModel):
    """Admin override. Both force_refund and a reason are required."""
    force_refund: bool = False
    reason: Optional[str] = None


class RefundProcessRequest(RefundOverrideRequest):
    amount: Optional[Decimal] = Field(None, gt=0)
    method: RefundMethod = RefundMethod.ORIGINAL_PAYMENT
    transaction_id: Optional[str] = None


class RefundRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class RefundResponse(BaseResponseSchema):
    id: UUID
    refund_number: str
    order_id: UUID
    user_id: UUID
    return_request_id: Optional[UUID] = None
    status: str
    method: str
    amount: Decimal
    reason: Optional[str] = None
    transaction_id: Optional[str] = None
    processed_by: Optional[UUID] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class RefundStatsResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    total_refunded_amount: Decimal
    average_refunded_amount: Decimal
