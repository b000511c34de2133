"""
Admin refund endpoints.

Refund records are readable as usual. Refund decisions on a return only go
through the audited override: force_refund=true plus a written reason.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import AdminUser, DB
from app.schemas.base import PaginatedResponse
from app.schemas.refund import (
    RefundOverrideRequest,
    RefundProcessRequest,
    RefundRejectRequest,
    RefundResponse,
    RefundStatsResponse,
)
from app.schemas.return_request import ReturnRequestResponse
from app.services.refunds_service import RefundsService
from app.services.refund_override_service import RefundOverrideService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/refunds", tags=["Admin Refunds"])


@router.get("", response_model=PaginatedResponse[RefundResponse])
async def list_refunds(
    admin: AdminUser,
    db: DB,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    method: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    order_id: Optional[uuid.UUID] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
):
    items, total = await RefundsService(db).find_all(
        status=status,
        method=method,
        user_id=user_id,
        order_id=order_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        size=size,
    )
    return PaginatedResponse.build(
        [RefundResponse.model_validate(r) for r in items], total, page, size
    )


@router.get("/stats", response_model=RefundStatsResponse)
async def get_refund_stats(
    admin: AdminUser,
    db: DB,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
):
    return RefundStatsResponse(**await RefundsService(db).get_stats(from_date, to_date))


@router.get("/{refund_id}", response_model=RefundResponse)
async def get_refund(refund_id: uuid.UUID, admin: AdminUser, db: DB):
    return RefundResponse.model_validate(await RefundsService(db).find_one(refund_id))


# ==================== Audited Overrides (by return) ====================

@router.post("/returns/{return_id}/approve", response_model=ReturnRequestResponse)
async def approve_refund(
    return_id: uuid.UUID,
    data: RefundOverrideRequest,
    admin: AdminUser,
    db: DB,
):
    """Force a return into REFUND_INITIATED. Requires force_refund and a reason."""
    return_request = await RefundOverrideService(db).force_approve(
        return_id, admin, data.force_refund, data.reason
    )
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/returns/{return_id}/process", response_model=RefundResponse)
async def process_refund(
    return_id: uuid.UUID,
    data: RefundProcessRequest,
    admin: AdminUser,
    db: DB,
):
    """Record a forced refund as PROCESSED and complete the return."""
    refund = await RefundOverrideService(db).force_process(
        return_id,
        admin,
        data.force_refund,
        data.reason,
        amount=data.amount,
        method=data.method,
        transaction_id=data.transaction_id,
    )
    return RefundResponse.model_validate(refund)


@router.post("/returns/{return_id}/reject", response_model=ReturnRequestResponse)
async def reject_refund(
    return_id: uuid.UUID,
    data: RefundRejectRequest,
    admin: AdminUser,
    db: DB,
):
    return_request = await RefundOverrideService(db).reject(return_id, admin, data.reason)
    return ReturnRequestResponse.model_validate(return_request)
