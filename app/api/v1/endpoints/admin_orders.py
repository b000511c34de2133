"""
Admin order endpoints.

Admins bypass the fulfilment flow but never the packing proof gate.
"""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, UploadFile, File, Form

from app.api.deps import AdminUser, DB, Storage
from app.schemas.order import OrderStatusUpdate, OrderResponse, AllowedTransitionsResponse
from app.services.order_service import OrderService
from app.services.packing_proof_service import read_video_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/orders", tags=["Admin Orders"])


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    admin: AdminUser,
    db: DB,
    storage: Storage,
):
    """Change an order's status (admin)."""
    order = await OrderService(db, storage).admin_update_status(
        order_id,
        data.status.value,
        admin,
        notes=data.notes,
        allow_override=data.allow_override,
    )
    logger.info(f"Admin {admin.id} set order {order.order_number} to {order.status}")
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/mark-shipped", response_model=OrderResponse)
async def mark_shipped(
    order_id: uuid.UUID,
    admin: AdminUser,
    db: DB,
    storage: Storage,
    file: Optional[UploadFile] = File(None, description="Packing video, if none is on record"),
    notes: Optional[str] = Form(None),
):
    """
    Mark an order as shipped.

    A packing video must already exist or be uploaded with this request.
    """
    video = None
    if file is not None:
        video = await read_video_upload(file)
    order = await OrderService(db, storage).mark_shipped(order_id, admin, file=video, notes=notes)
    return OrderResponse.model_validate(order)


@router.get("/{order_id}/allowed-transitions", response_model=AllowedTransitionsResponse)
async def get_allowed_transitions(
    order_id: uuid.UUID,
    admin: AdminUser,
    db: DB,
):
    service = OrderService(db)
    order = await service.get_order(order_id)
    allowed = await service.get_allowed_transitions(order_id, admin.role)
    return AllowedTransitionsResponse(order_id=order.id, current_status=order.status, allowed=allowed)
