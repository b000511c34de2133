"""Admin return endpoints: approve, reject, QC and replacement recovery."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import AdminUser, DB
from app.schemas.base import PaginatedResponse
from app.schemas.return_request import (
    ReturnRequestResponse,
    ReturnRequestListResponse,
    ReturnStatusUpdate,
    ReturnRejectRequest,
    VendorReturnDecision,
    QCChecklistSubmit,
    ReplacementOrderResponse,
)
from app.models.return_request import ReturnStatus
from app.services.returns_service import ReturnsService
from app.api.v1.endpoints.returns import to_list_item

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/returns", tags=["Admin Returns"])


@router.get("", response_model=PaginatedResponse[ReturnRequestListResponse])
async def list_returns(
    admin: AdminUser,
    db: DB,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    vendor_id: Optional[uuid.UUID] = None,
):
    items, total = await ReturnsService(db).find_all(
        page=page, size=size, status=status, search=search, user_id=user_id, vendor_id=vendor_id
    )
    return PaginatedResponse.build([to_list_item(r) for r in items], total, page, size)


@router.get("/{return_id}", response_model=ReturnRequestResponse)
async def get_return(return_id: uuid.UUID, admin: AdminUser, db: DB):
    return ReturnRequestResponse.model_validate(await ReturnsService(db).find_one(return_id))


@router.post("/{return_id}/approve", response_model=ReturnRequestResponse)
async def approve_return(
    return_id: uuid.UUID,
    data: VendorReturnDecision,
    admin: AdminUser,
    db: DB,
):
    """Approve a return. Creates the replacement order exactly once."""
    return_request = await ReturnsService(db).update_status(
        return_id, ReturnStatusUpdate(status=ReturnStatus.APPROVED, notes=data.notes), admin.id
    )
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/{return_id}/reject", response_model=ReturnRequestResponse)
async def reject_return(
    return_id: uuid.UUID,
    data: ReturnRejectRequest,
    admin: AdminUser,
    db: DB,
):
    return_request = await ReturnsService(db).update_status(
        return_id,
        ReturnStatusUpdate(status=ReturnStatus.REJECTED, rejection_reason=data.reason, notes=data.reason),
        admin.id,
    )
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/{return_id}/qc", response_model=ReturnRequestResponse)
async def inspect_return(
    return_id: uuid.UUID,
    data: QCChecklistSubmit,
    admin: AdminUser,
    db: DB,
):
    """Submit the QC checklist and move the return to QC_PASSED or QC_FAILED."""
    return_request = await ReturnsService(db).inspect_return(return_id, admin.id, data)
    return ReturnRequestResponse.model_validate(return_request)


@router.post("/{return_id}/replacement", response_model=ReplacementOrderResponse)
async def ensure_replacement(return_id: uuid.UUID, admin: AdminUser, db: DB):
    """Create the replacement order for an approved return if it is missing."""
    replacement = await ReturnsService(db).ensure_replacement(return_id, admin.id)
    return ReplacementOrderResponse.model_validate(replacement)
