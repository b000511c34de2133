"""
Customer order endpoints: cancellation and packing video viewing.
"""
import logging
import uuid

from fastapi import APIRouter

from app.api.deps import CurrentUser, DB, Storage
from app.schemas.order import OrderCancelRequest, OrderResponse, SignedVideoUrlResponse
from app.services.order_service import OrderService
from app.services.packing_proof_service import PackingProofService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: uuid.UUID,
    data: OrderCancelRequest,
    current_user: CurrentUser,
    db: DB,
):
    """
    Cancel one of your orders.

    Allowed until the vendor has packed the order.
    """
    order = await OrderService(db).cancel_order(current_user.id, order_id, data.reason)
    return OrderResponse.model_validate(order)


@router.get("/{order_id}/packing-video", response_model=SignedVideoUrlResponse)
async def get_packing_video(
    order_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    storage: Storage,
):
    """Short-lived link to the packing video recorded for your order."""
    result = await PackingProofService(db, storage).get_signed_video_url_for_customer(
        current_user.id, order_id
    )
    return SignedVideoUrlResponse(**result)
