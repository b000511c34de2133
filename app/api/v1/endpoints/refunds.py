"""Customer refund endpoints. Direct refund requests are rejected by policy."""
import logging
from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, DB
from app.schemas.base import PaginatedResponse
from app.schemas.refund import RefundCreateRequest, RefundResponse
from app.services.refunds_service import RefundsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/refunds", tags=["Refunds"])


@router.post("", response_model=RefundResponse)
async def request_refund(
    data: RefundCreateRequest,
    current_user: CurrentUser,
    db: DB,
):
    """
    Request a monetary refund.

    Always answered with 409: returns are settled by replacement.
    """
    return await RefundsService(db).create(
        current_user.id,
        data.model_dump(exclude={"force_refund", "reason"}),
        force_refund=data.force_refund,
        reason=data.reason,
    )


@router.get("", response_model=PaginatedResponse[RefundResponse])
async def list_my_refunds(
    current_user: CurrentUser,
    db: DB,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
):
    items, total = await RefundsService(db).find_all(
        status=status, user_id=current_user.id, page=page, size=size
    )
    return PaginatedResponse.build(
        [RefundResponse.model_validate(r) for r in items], total, page, size
    )
