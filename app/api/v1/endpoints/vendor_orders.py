"""Vendor order endpoints: packing video upload and PACKED/SHIPPED updates."""
import logging
import uuid

from fastapi import APIRouter, UploadFile, File

from app.api.deps import CurrentVendor, VendorUser, DB, Storage
from app.core.exceptions import ForbiddenError
from app.models.user import UserRole
from app.schemas.order import (
    VendorOrderStatusUpdate,
    OrderResponse,
    AllowedTransitionsResponse,
    PackingVideoUploadResponse,
)
from app.services.order_service import OrderService
from app.services.packing_proof_service import PackingProofService, read_video_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/vendor/orders", tags=["Vendor Orders"])


@router.post("/{order_id}/packing-video", response_model=PackingVideoUploadResponse)
async def upload_packing_video(
    order_id: uuid.UUID,
    vendor: CurrentVendor,
    user: VendorUser,
    db: DB,
    storage: Storage,
    file: UploadFile = File(..., description="Packing video (max 50MB)"),
):
    """Upload the packing video for one of your orders."""
    order = await OrderService(db).get_order(order_id)
    if str(vendor.id) not in order.vendor_ids:
        raise ForbiddenError("Order does not belong to you")

    video = await read_video_upload(file)
    result = await PackingProofService(db, storage).upload_packing_video(vendor.id, user.id, order_id, video)
    return PackingVideoUploadResponse(**result)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: VendorOrderStatusUpdate,
    vendor: CurrentVendor,
    user: VendorUser,
    db: DB,
    storage: Storage,
):
    """Mark one of your orders PACKED or SHIPPED. Requires a packing video."""
    order = await OrderService(db, storage).vendor_update_status(
        vendor.id, order_id, data.status.value, user, notes=data.notes
    )
    return OrderResponse.model_validate(order)


@router.get("/{order_id}/allowed-transitions", response_model=AllowedTransitionsResponse)
async def get_allowed_transitions(
    order_id: uuid.UUID,
    vendor: CurrentVendor,
    db: DB,
):
    service = OrderService(db)
    order = await service.get_order(order_id)
    if str(vendor.id) not in order.vendor_ids:
        raise ForbiddenError("Order does not belong to you")
    allowed = await service.get_allowed_transitions(order_id, UserRole.VENDOR.value)
    return AllowedTransitionsResponse(order_id=order.id, current_status=order.status, allowed=allowed)
