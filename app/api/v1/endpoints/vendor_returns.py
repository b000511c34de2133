"""Vendor return endpoints."""
import uuid
from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import CurrentVendor, VendorUser, DB
from app.core.exceptions import ForbiddenError
from app.schemas.base import PaginatedResponse
from app.schemas.return_request import (
    ReturnRequestResponse,
    ReturnRequestListResponse,
    ReturnRejectRequest,
    VendorReturnDecision,
    VendorReturnStats,
)
from app.services.returns_service import ReturnsService
from app.api.v1.endpoints.returns import to_list_item

router = APIRouter(prefix="/vendor/returns", tags=["Vendor Returns"])


@router.get("", response_model=PaginatedResponse[ReturnRequestListResponse])
async def list_returns(
    vendor: CurrentVendor,
    db: DB,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = None,
):
    items, total = await ReturnsService(db).find_all(
        page=page, size=size, status=status, search=search, vendor_id=vendor.id
    )
    return PaginatedResponse.build([to_list_item(r) for r in items], total, page, size)


@router.get("/stats", response_model=VendorReturnStats)
async def get_stats(vendor: CurrentVendor, db: DB):
    return VendorReturnStats(**await ReturnsService(db).get_vendor_stats(vendor.id))


@router.get("/{return_id}", response_model=ReturnRequestResponse)
async def get_return(return_id: uuid.UUID, vendor: CurrentVendor, db: DB):
    return_request = await ReturnsService(db).find_one(return_id)
    if return_request.vendor_id != vendor.id:
        raise ForbiddenError("Return request does not belong to this vendor")
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/{return_id}/accept", response_model=ReturnRequestResponse)
async def accept_return(
    return_id: uuid.UUID,
    data: VendorReturnDecision,
    vendor: CurrentVendor,
    user: VendorUser,
    db: DB,
):
    """Accept a pending return; the replacement order is created on acceptance."""
    return_request = await ReturnsService(db).accept_return(vendor.id, return_id, user.id, data.notes)
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/{return_id}/reject", response_model=ReturnRequestResponse)
async def reject_return(
    return_id: uuid.UUID,
    data: ReturnRejectRequest,
    vendor: CurrentVendor,
    user: VendorUser,
    db: DB,
):
    return_request = await ReturnsService(db).reject_return(vendor.id, return_id, user.id, data.reason)
    return ReturnRequestResponse.model_validate(return_request)
