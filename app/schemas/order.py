"""Pydantic schemas for order status operations and packing proof."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel

from app.models.order import OrderStatus
from app.schemas.base import BaseResponseSchema


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None
    allow_override: bool = False


class VendorOrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = None


class OrderResponse(BaseResponseSchema):
    id: UUID
    order_number: str
    user_id: UUID
    status: str
    payment_mode: str
    total_amount: Decimal
    items_snapshot: List[dict]
    address_id: Optional[UUID] = None
    room_id: Optional[UUID] = None
    is_replacement: bool = False
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AllowedTransitionsResponse(BaseModel):
    order_id: UUID
    current_status: str
    allowed: List[str]


class PackingVideoUploadResponse(BaseModel):
    success: bool
    proof_id: UUID


class SignedVideoUrlResponse(BaseModel):
    signed_url: str
    expires_in_seconds: int
