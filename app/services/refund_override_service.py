"""
Refund Override Service

The only path that can move money back to a customer. Each call requires
force_refund=True and a written reason, and the audit entry is committed
before anything else happens.
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, RefundPolicyBlockedError, RefundPolicyDecision
from app.models.order import Order
from app.models.refund import Refund, RefundStatus, RefundMethod
from app.models.return_request import ReturnRequest, ReturnStatus
from app.models.user import User
from app.schemas.return_request import ReturnStatusUpdate
from app.services.audit_service import AuditService
from app.services.refund_policy import check_refund_policy
from app.services.returns_service import ReturnsService


logger = logging.getLogger(__name__)


class RefundOverrideService:
    """Admin-only, audited refund decisions on return requests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.returns = ReturnsService(db)

    def _authorize(self, force_refund: bool, reason: Optional[str]) -> RefundPolicyDecision:
        decision = check_refund_policy(force_refund, reason)
        if not decision.override_attempted:
            raise RefundPolicyBlockedError(decision)
        if not decision.reason_supplied:
            raise BadRequestError(decision.message)
        return decision

    async def _audit_first(self, admin: User, action: str, return_id: uuid.UUID, details: dict) -> None:
        await self.audit.log_admin_action(admin.id, action, "ReturnRequest", return_id, details)
        await self.db.commit()
        logger.warning(f"{action} on return {return_id} by admin {admin.id}: {details.get('reason')}")

    async def force_approve(
        self,
        return_id: uuid.UUID,
        admin: User,
        force_refund: bool,
        reason: Optional[str],
    ) -> ReturnRequest:
        """Move a return to REFUND_INITIATED under an audited override."""
        decision = self._authorize(force_refund, reason)
        await self.returns.find_one(return_id)
        await self._audit_first(admin, "FORCE_REFUND_APPROVE", return_id, {"reason": reason})

        return await self.returns.update_status(
            return_id,
            ReturnStatusUpdate(status=ReturnStatus.REFUND_INITIATED, notes=f"Forced refund: {reason}"),
            admin.id,
            refund_decision=decision,
        )

    async def force_process(
        self,
        return_id: uuid.UUID,
        admin: User,
        force_refund: bool,
        reason: Optional[str],
        amount: Optional[Decimal] = None,
        method: RefundMethod = RefundMethod.ORIGINAL_PAYMENT,
        transaction_id: Optional[str] = None,
    ) -> Refund:
        """Settle a forced refund: REFUND_COMPLETED plus a PROCESSED refund record."""
        decision = self._authorize(force_refund, reason)
        return_request = await self.returns.find_one(return_id)
        await self._audit_first(
            admin,
            "FORCE_REFUND_PROCESS",
            return_id,
            {"reason": reason, "amount": str(amount) if amount is not None else None, "method": method.value},
        )

        try:
            await self.returns.update_status(
                return_id,
                ReturnStatusUpdate(status=ReturnStatus.REFUND_COMPLETED, notes=f"Forced refund processed: {reason}"),
                admin.id,
                refund_decision=decision,
                commit=False,
            )

            if amount is None:
                order = (
                    await self.db.execute(select(Order).where(Order.id == return_request.order_id))
                ).scalar_one()
                amount = order.total_amount

            now = datetime.now(timezone.utc)
            refund = Refund(
                refund_number=f"RFD-{now.year}-{uuid.uuid4().hex[:8].upper()}",
                order_id=return_request.order_id,
                user_id=return_request.user_id,
                return_request_id=return_request.id,
                status=RefundStatus.PROCESSED.value,
                method=method.value,
                amount=amount,
                reason=reason,
                admin_notes="Processed through audited refund override",
                transaction_id=transaction_id,
                processed_by=admin.id,
                processed_at=now,
            )
            self.db.add(refund)
            # REFUND_COMPLETED and the refund row land together or not at all
            await self.db.commit()
        except Exception as e:
            logger.error(f"Forced refund for return {return_id} failed: {e}")
            await self.db.rollback()
            raise

        logger.info(f"Refund {refund.refund_number} processed for return {return_request.return_number}")
        return refund

    async def reject(self, return_id: uuid.UUID, admin: User, reason: Optional[str]) -> ReturnRequest:
        """Close a return without refund or replacement."""
        if not reason or not reason.strip():
            raise BadRequestError("reason is required to reject a refund")

        await self.returns.find_one(return_id)
        await self._audit_first(admin, "REFUND_REJECT", return_id, {"reason": reason})

        return await self.returns.update_status(
            return_id,
            ReturnStatusUpdate(status=ReturnStatus.REJECTED, rejection_reason=reason, notes=reason),
            admin.id,
        )
