"""
Return Request API Endpoints

Customers open and track returns; staff drive the status pipeline.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, status

from app.api.deps import CurrentUser, AdminUser, DB
from app.schemas.base import PaginatedResponse
from app.schemas.return_request import (
    ReturnRequestCreate,
    ReturnRequestResponse,
    ReturnRequestListResponse,
    ReturnStatusUpdate,
    ShipReplacementRequest,
    QCChecklistSubmit,
    QCChecklistResponse,
)
from app.services.returns_service import ReturnsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/returns", tags=["Returns"])


def to_list_item(r) -> ReturnRequestListResponse:
    return ReturnRequestListResponse(
        id=r.id,
        return_number=r.return_number,
        order_id=r.order_id,
        vendor_id=r.vendor_id,
        reason=r.reason,
        status=r.status,
        requested_at=r.requested_at,
        items_count=len(r.items),
    )


# ==================== Customer Endpoints ====================

@router.post("", response_model=ReturnRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_return(
    data: ReturnRequestCreate,
    current_user: CurrentUser,
    db: DB,
):
    """
    Request a return for a delivered order.

    Returns are settled by replacement once approved.
    """
    return_request = await ReturnsService(db).create(current_user.id, data)
    logger.info(f"Return {return_request.return_number} created by {current_user.id}")
    return ReturnRequestResponse.model_validate(return_request)


@router.get("", response_model=PaginatedResponse[ReturnRequestListResponse])
async def list_returns(
    current_user: CurrentUser,
    db: DB,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
):
    """List returns. Customers only see their own."""
    user_filter = None if current_user.is_admin else current_user.id
    items, total = await ReturnsService(db).find_all(
        page=page,
        size=size,
        status=status,
        search=search,
        user_id=user_filter,
        from_date=from_date,
        to_date=to_date,
    )
    return PaginatedResponse.build([to_list_item(r) for r in items], total, page, size)


@router.get("/{return_id}", response_model=ReturnRequestResponse)
async def get_return(
    return_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
):
    user_filter = None if current_user.is_admin else current_user.id
    return_request = await ReturnsService(db).find_one(return_id, user_id=user_filter)
    return ReturnRequestResponse.model_validate(return_request)


# ==================== Staff Endpoints ====================

@router.patch("/{return_id}/status", response_model=ReturnRequestResponse)
async def update_return_status(
    return_id: uuid.UUID,
    data: ReturnStatusUpdate,
    admin: AdminUser,
    db: DB,
):
    """Move a return through the approval / QC / replacement pipeline."""
    return_request = await ReturnsService(db).update_status(return_id, data, admin.id)
    return ReturnRequestResponse.model_validate(return_request)


@router.patch("/{return_id}/ship-replacement", response_model=ReturnRequestResponse)
async def ship_replacement(
    return_id: uuid.UUID,
    data: ShipReplacementRequest,
    admin: AdminUser,
    db: DB,
):
    return_request = await ReturnsService(db).ship_replacement(return_id, data.tracking_id, admin.id)
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/{order_id}/submit-qc", response_model=QCChecklistResponse)
async def submit_qc_checklist(
    order_id: uuid.UUID,
    data: QCChecklistSubmit,
    admin: AdminUser,
    db: DB,
):
    """Record the QC checklist for a returned order."""
    record = await ReturnsService(db).submit_qc_checklist(order_id, admin.id, data, inspector_role=admin.role)
    return QCChecklistResponse.model_validate(record)
