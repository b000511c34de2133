"""
Refunds Service

Historical refund records stay fully queryable. Every write path is
unconditionally blocked here; the only way to create or settle a refund
is RefundOverrideService, which audits each use.
"""
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Tuple, Dict, Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, RefundPolicyBlockedError
from app.models.refund import Refund, RefundStatus
from app.services.refund_policy import check_refund_policy, BLOCKED_MESSAGE


logger = logging.getLogger(__name__)


class RefundsService:
    """Read access to refunds plus the structurally blocked write paths."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== BLOCKED WRITES ====================

    def _block(self, operation: str, force_refund: bool, reason: Optional[str]) -> None:
        decision = check_refund_policy(force_refund, reason)
        logger.warning(
            f"Blocked refund {operation} (override_attempted={decision.override_attempted}, "
            f"reason_supplied={decision.reason_supplied})"
        )
        # The guard never honours an override; that path lives in RefundOverrideService
        raise RefundPolicyBlockedError(replace(decision, allowed=False, message=BLOCKED_MESSAGE))

    async def create(
        self,
        user_id: uuid.UUID,
        data: Dict[str, Any],
        force_refund: bool = False,
        reason: Optional[str] = None,
    ) -> Refund:
        self._block("create", force_refund, reason)

    async def process_refund(
        self,
        refund_id: uuid.UUID,
        data: Dict[str, Any],
        admin_id: Optional[uuid.UUID] = None,
        force_refund: bool = False,
        reason: Optional[str] = None,
    ) -> Refund:
        self._block("process", force_refund, reason)

    async def reject_refund(
        self,
        refund_id: uuid.UUID,
        admin_id: Optional[uuid.UUID] = None,
        force_refund: bool = False,
        reason: Optional[str] = None,
    ) -> Refund:
        self._block("reject", force_refund, reason)

    # ==================== READS ====================

    @staticmethod
    def _apply_filters(
        query,
        status: Optional[str] = None,
        method: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        order_id: Optional[uuid.UUID] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ):
        if status:
            query = query.where(Refund.status == status)
        if method:
            query = query.where(Refund.method == method)
        if user_id:
            query = query.where(Refund.user_id == user_id)
        if order_id:
            query = query.where(Refund.order_id == order_id)
        if from_date:
            query = query.where(Refund.created_at >= from_date)
        if to_date:
            query = query.where(Refund.created_at <= to_date)
        return query

    async def find_all(
        self,
        status: Optional[str] = None,
        method: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        order_id: Optional[uuid.UUID] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        size: int = 20,
    ) -> Tuple[List[Refund], int]:
        """List refunds with filters and pagination. Returns (items, total)."""
        query = self._apply_filters(
            select(Refund), status, method, user_id, order_id, from_date, to_date
        )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(Refund.created_at.desc()).offset((page - 1) * size).limit(size)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def find_one(self, refund_id: uuid.UUID) -> Refund:
        result = await self.db.execute(select(Refund).where(Refund.id == refund_id))
        refund = result.scalar_one_or_none()
        if not refund:
            raise NotFoundError("Refund not found")
        return refund

    async def get_stats(
        self,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Counts by status plus total and average refunded amount."""
        base = self._apply_filters(select(Refund), from_date=from_date, to_date=to_date).subquery()

        rows = await self.db.execute(
            select(base.c.status, func.count()).group_by(base.c.status)
        )
        by_status = {status.value: 0 for status in RefundStatus}
        for status, count in rows.all():
            by_status[status] = count

        amounts = await self.db.execute(
            select(func.coalesce(func.sum(base.c.amount), 0), func.avg(base.c.amount))
            .where(base.c.status == RefundStatus.PROCESSED.value)
        )
        total_amount, average_amount = amounts.one()

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "total_refunded_amount": Decimal(str(total_amount or 0)),
            "average_refunded_amount": Decimal(str(round(float(average_amount or 0), 2))),
        }
