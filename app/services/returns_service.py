"""
Returns Service

Owns the return request lifecycle: creation against delivered orders,
vendor/admin decisions, QC inspection, replacement order creation and
replacement dispatch. Returns are settled by replacement; refund-named
statuses are only reachable through the audited refund override.
"""
import logging
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Tuple, Dict, Callable

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.core.exceptions import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    RefundPolicyBlockedError,
    RefundPolicyDecision,
)
from app.models.order import Order, OrderStatus, OrderStatusHistory, PaymentMode
from app.models.product import Product
from app.models.return_request import (
    ReturnRequest,
    ReturnItem,
    ReturnTimeline,
    ReplacementOrder,
    ReturnQCChecklist,
    ReturnStatus,
    ReturnActor,
    QCStatus,
)
from app.models.user import User, UserRole
from app.models.vendor import Vendor
from app.models.notification import NotificationType, NotificationAudience
from app.schemas.return_request import ReturnRequestCreate, ReturnStatusUpdate, QCChecklistSubmit
from app.services.inventory_service import InventoryService
from app.services.notification_service import NotificationService
from app.services.order_state_validator import OrderStateValidatorService
from app.services.refund_policy import check_refund_policy


logger = logging.getLogger(__name__)


R = ReturnStatus

# Format: current_status -> [allowed next statuses]
RETURN_TRANSITIONS: Dict[str, List[str]] = {
    R.PENDING_APPROVAL.value: [R.APPROVED.value, R.REJECTED.value],
    R.APPROVED.value: [
        R.PICKUP_SCHEDULED.value,
        R.RECEIVED_AT_WAREHOUSE.value,
        R.QC_IN_PROGRESS.value,
        R.QC_PASSED.value,
        R.QC_FAILED.value,
        R.REPLACEMENT_SHIPPED.value,
        R.REFUND_INITIATED.value,
    ],
    R.PICKUP_SCHEDULED.value: [R.PICKUP_COMPLETED.value, R.IN_TRANSIT.value, R.RECEIVED_AT_WAREHOUSE.value],
    R.PICKUP_COMPLETED.value: [R.IN_TRANSIT.value, R.RECEIVED_AT_WAREHOUSE.value],
    R.IN_TRANSIT.value: [R.RECEIVED_AT_WAREHOUSE.value],
    R.RECEIVED_AT_WAREHOUSE.value: [
        R.QC_IN_PROGRESS.value,
        R.QC_PASSED.value,
        R.QC_FAILED.value,
        R.REPLACEMENT_SHIPPED.value,
        R.REFUND_INITIATED.value,
    ],
    R.QC_IN_PROGRESS.value: [R.QC_PASSED.value, R.QC_FAILED.value],
    R.QC_PASSED.value: [R.RECEIVED_AT_WAREHOUSE.value, R.REPLACEMENT_SHIPPED.value, R.REFUND_INITIATED.value],
    R.QC_FAILED.value: [R.REJECTED.value],
    R.REFUND_INITIATED.value: [R.REFUND_COMPLETED.value, R.REJECTED.value],
    # Terminal
    R.REJECTED.value: [],
    R.REPLACEMENT_SHIPPED.value: [],
    R.REFUND_COMPLETED.value: [],
}

REFUND_STATUSES = frozenset({R.REFUND_INITIATED.value, R.REFUND_COMPLETED.value})

# Statuses from which a replacement may exist
REPLACEMENT_ELIGIBLE_STATUSES = frozenset(
    s.value for s in ReturnStatus if s not in (R.PENDING_APPROVAL, R.REJECTED)
)


# ==================== QC GRADING ====================

def _box_integrity_passes(checklist: QCChecklistSubmit) -> bool:
    return checklist.is_brand_box_intact and checklist.is_product_intact


def _condition_passes(checklist: QCChecklistSubmit) -> bool:
    accessories_ok = checklist.all_accessories_present and not checklist.missing_accessories
    return not checklist.has_physical_damage and checklist.is_unused and accessories_ok


# Grading rule per checklist schema version
QC_RULES: Dict[str, Callable[[QCChecklistSubmit], bool]] = {
    "BOX_INTEGRITY": _box_integrity_passes,
    "CONDITION": _condition_passes,
}


def evaluate_qc_checklist(checklist: QCChecklistSubmit) -> str:
    """Grade a checklist as PASSED or FAILED using its schema version's rule."""
    rule = QC_RULES.get(checklist.schema_version)
    if rule is None:
        raise BadRequestError(
            f"Unknown QC checklist version {checklist.schema_version}. "
            f"Expected one of: {', '.join(QC_RULES)}"
        )
    return QCStatus.PASSED.value if rule(checklist) else QCStatus.FAILED.value


class ReturnsService:
    """Service for the return -> replacement workflow."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.inventory = InventoryService(db)
        self.notifications = NotificationService(db)
        self.order_validator = OrderStateValidatorService(db)

    # ==================== HELPERS ====================

    async def _generate_return_number(self) -> str:
        """Generate a unique return number like RET-2026-004821."""
        year = datetime.now(timezone.utc).year
        for _ in range(settings.RETURN_NUMBER_MAX_ATTEMPTS):
            candidate = f"{settings.RETURN_NUMBER_PREFIX}-{year}-{random.randint(0, 999999):06d}"
            exists = await self.db.execute(
                select(ReturnRequest.id).where(ReturnRequest.return_number == candidate)
            )
            if exists.scalar_one_or_none() is None:
                return candidate
        raise BadRequestError("Could not allocate a return number, please retry")

    def _add_timeline(
        self,
        return_request: ReturnRequest,
        status: str,
        action: str,
        performed_by: str,
        actor_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
    ) -> ReturnTimeline:
        entry = ReturnTimeline(
            return_id=return_request.id,
            status=status,
            action=action,
            performed_by=performed_by,
            actor_id=actor_id,
            notes=notes,
        )
        self.db.add(entry)
        return entry

    async def _get_replacement(self, return_id: uuid.UUID) -> Optional[ReplacementOrder]:
        result = await self.db.execute(
            select(ReplacementOrder).where(ReplacementOrder.return_id == return_id)
        )
        return result.scalar_one_or_none()

    async def _find_vendor_user(self, vendor_id: Optional[uuid.UUID]) -> Optional[User]:
        """Vendor accounts are linked to users by mobile number."""
        if vendor_id is None:
            return None
        vendor = (await self.db.execute(select(Vendor).where(Vendor.id == vendor_id))).scalar_one_or_none()
        if not vendor:
            return None
        result = await self.db.execute(select(User).where(User.mobile == vendor.mobile))
        return result.scalar_one_or_none()

    # ==================== CREATE / READ ====================

    async def create(self, user_id: uuid.UUID, data: ReturnRequestCreate) -> ReturnRequest:
        """
        Open a return against a delivered order owned by the user.

        Raises:
            NotFoundError: order missing or not owned by the user
            BadRequestError: order not delivered, open return exists, or items not in the order
        """
        order = (
            await self.db.execute(select(Order).where(Order.id == data.order_id, Order.user_id == user_id))
        ).scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")

        if order.status != OrderStatus.DELIVERED.value:
            raise BadRequestError("Returns can only be requested for delivered orders")

        open_return = await self.db.execute(
            select(ReturnRequest.id).where(
                ReturnRequest.order_id == order.id,
                ReturnRequest.status != ReturnStatus.REJECTED.value,
            )
        )
        if open_return.first() is not None:
            raise BadRequestError("A return request already exists for this order")

        ordered_qty: Dict[str, int] = {}
        for line in order.items_snapshot or []:
            key = str(line.get("product_id"))
            ordered_qty[key] = ordered_qty.get(key, 0) + int(line.get("quantity", 0))

        for item in data.items:
            available = ordered_qty.get(str(item.product_id))
            if available is None:
                raise BadRequestError(f"Product {item.product_id} is not part of this order")
            if item.quantity > available:
                raise BadRequestError(
                    f"Cannot return {item.quantity} of product {item.product_id}; only {available} ordered"
                )

        # Single-vendor attribution: the first returned product's vendor
        first_product = (
            await self.db.execute(select(Product).where(Product.id == data.items[0].product_id))
        ).scalar_one_or_none()
        vendor_id = first_product.vendor_id if first_product else None

        return_request = ReturnRequest(
            return_number=await self._generate_return_number(),
            user_id=user_id,
            order_id=order.id,
            vendor_id=vendor_id,
            reason=data.reason.value,
            description=data.description,
            evidence_images=data.evidence_images,
            evidence_video=data.evidence_video,
            pickup_address=data.pickup_address,
            status=ReturnStatus.PENDING_APPROVAL.value,
        )
        self.db.add(return_request)
        await self.db.flush()

        for item in data.items:
            self.db.add(ReturnItem(
                return_id=return_request.id,
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                condition=item.condition,
                reason=(item.reason or data.reason).value,
            ))

        self._add_timeline(
            return_request,
            ReturnStatus.PENDING_APPROVAL.value,
            "RETURN_REQUESTED",
            ReturnActor.CUSTOMER.value,
            actor_id=user_id,
        )
        await self.db.commit()

        logger.info(f"Return {return_request.return_number} requested for order {order.order_number}")
        return await self.find_one(return_request.id)

    async def find_all(
        self,
        page: int = 1,
        size: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        vendor_id: Optional[uuid.UUID] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Tuple[List[ReturnRequest], int]:
        """List returns with filters and pagination. Returns (items, total)."""
        query = select(ReturnRequest).options(selectinload(ReturnRequest.items))

        if status and status != "ALL":
            query = query.where(ReturnRequest.status == status)
        if user_id:
            query = query.where(ReturnRequest.user_id == user_id)
        if vendor_id:
            query = query.where(ReturnRequest.vendor_id == vendor_id)
        if from_date:
            query = query.where(ReturnRequest.requested_at >= from_date)
        if to_date:
            query = query.where(ReturnRequest.requested_at <= to_date)
        if search:
            query = query.where(
                or_(
                    ReturnRequest.return_number.ilike(f"%{search}%"),
                    ReturnRequest.order.has(Order.order_number.ilike(f"%{search}%")),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(ReturnRequest.requested_at.desc()).offset((page - 1) * size).limit(size)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def find_one(self, return_id: uuid.UUID, user_id: Optional[uuid.UUID] = None) -> ReturnRequest:
        query = (
            select(ReturnRequest)
            .options(
                selectinload(ReturnRequest.items),
                selectinload(ReturnRequest.timeline),
                selectinload(ReturnRequest.replacement),
            )
            .where(ReturnRequest.id == return_id)
            .execution_options(populate_existing=True)
        )
        if user_id:
            query = query.where(ReturnRequest.user_id == user_id)

        return_request = (await self.db.execute(query)).scalar_one_or_none()
        if not return_request:
            raise NotFoundError("Return request not found")
        return return_request

    # ==================== STATUS UPDATES ====================

    async def update_status(
        self,
        return_id: uuid.UUID,
        data: ReturnStatusUpdate,
        admin_id: Optional[uuid.UUID],
        performed_by: str = ReturnActor.ADMIN.value,
        refund_decision: Optional[RefundPolicyDecision] = None,
        commit: bool = True,
    ) -> ReturnRequest:
        """
        Move a return to a new status and run the side effects of entering it.

        Every call appends one timeline entry, including same-status calls.
        Entering APPROVED creates the replacement order once; entering
        QC_PASSED restores stock once. Both guards read the persisted
        previous status, so repeated calls are harmless.

        With commit=False the changes are only flushed and the caller owns
        the transaction.
        """
        return_request = await self.find_one(return_id)
        previous_status = return_request.status
        new_status = data.status.value if isinstance(data.status, ReturnStatus) else str(data.status)

        if new_status != previous_status and new_status not in RETURN_TRANSITIONS.get(previous_status, []):
            raise BadRequestError(f"Cannot move return from {previous_status} to {new_status}")

        if new_status in REFUND_STATUSES and not (refund_decision and refund_decision.allowed):
            raise RefundPolicyBlockedError(check_refund_policy(False, None))

        entering = new_status != previous_status
        now = datetime.now(timezone.utc)

        try:
            return_request.status = new_status
            if new_status == ReturnStatus.APPROVED.value and entering:
                return_request.approved_at = now
            if new_status == ReturnStatus.REJECTED.value:
                return_request.rejected_at = now
                return_request.rejection_reason = data.rejection_reason or data.notes

            self._add_timeline(
                return_request,
                new_status,
                f"STATUS_UPDATE_TO_{new_status}",
                performed_by,
                actor_id=admin_id,
                notes=data.notes,
            )

            if new_status == ReturnStatus.QC_PASSED.value and entering and return_request.stock_restored_at is None:
                for item in return_request.items:
                    await self.inventory.restore_stock(item.product_id, item.quantity, item.variant_id)
                return_request.stock_restored_at = now

            if new_status == ReturnStatus.APPROVED.value and entering:
                await self._build_replacement_order(return_request)

            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
        except Exception as e:
            logger.error(f"Updating return {return_request.return_number} to {new_status} failed: {e}")
            await self.db.rollback()
            raise

        logger.info(f"Return {return_request.return_number}: {previous_status} -> {new_status} by {performed_by}")

        if new_status == ReturnStatus.APPROVED.value and entering and commit:
            vendor_user = await self._find_vendor_user(return_request.vendor_id)
            await self.notifications.notify_safely(
                vendor_user.id if vendor_user else None,
                "Return Approved",
                f"Return {return_request.return_number} has been approved. A replacement order has been created.",
                type=NotificationType.RETURN.value,
                audience=NotificationAudience.VENDOR.value,
            )

        return await self.find_one(return_id)

    async def ship_replacement(
        self,
        return_id: uuid.UUID,
        tracking_id: str,
        admin_id: Optional[uuid.UUID],
    ) -> ReturnRequest:
        """Record dispatch of the replacement order."""
        return_request = await self.find_one(return_id)

        if not await self._get_replacement(return_request.id):
            raise BadRequestError("No replacement order exists for this return")

        target = ReturnStatus.REPLACEMENT_SHIPPED.value
        if target not in RETURN_TRANSITIONS.get(return_request.status, []):
            raise BadRequestError(f"Cannot ship replacement for return in {return_request.status} status")

        return_request.status = target
        return_request.replacement_tracking_id = tracking_id
        self._add_timeline(
            return_request,
            target,
            "REPLACEMENT_DISPATCHED",
            ReturnActor.ADMIN.value,
            actor_id=admin_id,
            notes=f"Tracking ID: {tracking_id}",
        )
        await self.db.commit()

        logger.info(f"Replacement for return {return_request.return_number} shipped ({tracking_id})")
        await self.notifications.notify_safely(
            return_request.user_id,
            "Replacement Shipped",
            f"Your replacement for return {return_request.return_number} is on its way. Tracking ID: {tracking_id}",
            type=NotificationType.RETURN.value,
            audience=NotificationAudience.CUSTOMER.value,
        )
        return await self.find_one(return_id)

    # ==================== REPLACEMENT ====================

    async def _build_replacement_order(self, return_request: ReturnRequest) -> ReplacementOrder:
        """
        Create the free replacement order, its link and the stock deductions.

        Does not commit: the caller's transaction decides whether all three
        effects land together.
        """
        existing = await self._get_replacement(return_request.id)
        if existing:
            return existing

        original = (
            await self.db.execute(select(Order).where(Order.id == return_request.order_id))
        ).scalar_one_or_none()
        if not original:
            raise NotFoundError("Original order not found")

        new_order = Order(
            order_number=f"REP-{uuid.uuid4().hex[:12].upper()}",
            user_id=original.user_id,
            status=OrderStatus.CONFIRMED.value,
            payment_mode=PaymentMode.COD.value,
            total_amount=0,
            items_snapshot=[dict(line) for line in original.items_snapshot or []],
            address_id=original.address_id,
            room_id=original.room_id,
            is_replacement=True,
        )
        self.db.add(new_order)
        await self.db.flush()

        self.db.add(OrderStatusHistory(
            order_id=new_order.id,
            from_status=None,
            to_status=OrderStatus.CONFIRMED.value,
            actor_role=ReturnActor.SYSTEM.value,
            notes=f"Replacement for return {return_request.return_number}",
        ))

        replacement = ReplacementOrder(
            original_order_id=original.id,
            return_id=return_request.id,
            new_order_id=new_order.id,
        )
        self.db.add(replacement)
        await self.db.flush()

        # The replacement consumes inventory like a new sale
        for item in return_request.items:
            await self.inventory.deduct_stock(item.product_id, item.quantity, item.variant_id)

        logger.info(
            f"Replacement order {new_order.order_number} created for return {return_request.return_number}"
        )
        return replacement

    async def create_replacement_order(self, return_id: uuid.UUID) -> ReplacementOrder:
        """Create the replacement for a return in one transaction. Idempotent."""
        return_request = await self.find_one(return_id)
        try:
            replacement = await self._build_replacement_order(return_request)
            await self.db.commit()
        except Exception as e:
            logger.error(f"Replacement creation for return {return_request.return_number} failed: {e}")
            await self.db.rollback()
            raise
        return replacement

    async def ensure_replacement(self, return_id: uuid.UUID, admin_id: Optional[uuid.UUID]) -> ReplacementOrder:
        """Create the replacement for an approved return if it is missing."""
        return_request = await self.find_one(return_id)
        if return_request.status not in REPLACEMENT_ELIGIBLE_STATUSES:
            raise BadRequestError("Return must be approved before a replacement can be created")

        existing = await self._get_replacement(return_request.id)
        if existing:
            return existing

        try:
            replacement = await self._build_replacement_order(return_request)
            self._add_timeline(
                return_request,
                return_request.status,
                "REPLACEMENT_CREATED",
                ReturnActor.ADMIN.value,
                actor_id=admin_id,
            )
            await self.db.commit()
        except Exception as e:
            logger.error(f"Replacement creation for return {return_request.return_number} failed: {e}")
            await self.db.rollback()
            raise
        return replacement

    # ==================== QC ====================

    async def submit_qc_checklist(
        self,
        order_id: uuid.UUID,
        inspector_id: Optional[uuid.UUID],
        checklist: QCChecklistSubmit,
        inspector_role: str = UserRole.ADMIN.value,
    ) -> ReturnQCChecklist:
        """
        Record the inspection of a returned order.

        A pass marks the order RETURN_RECEIVED through the order validator
        (audited admin override); a fail is left for manual follow-up.
        """
        order = (await self.db.execute(select(Order).where(Order.id == order_id))).scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")

        status = evaluate_qc_checklist(checklist)
        vendor_id = None
        snapshot = order.items_snapshot or []
        if snapshot and snapshot[0].get("vendor_id"):
            vendor_id = uuid.UUID(str(snapshot[0]["vendor_id"]))

        values = dict(
            vendor_id=vendor_id,
            inspector_id=inspector_id,
            schema_version=checklist.schema_version,
            is_brand_box_intact=checklist.is_brand_box_intact,
            is_product_intact=checklist.is_product_intact,
            is_original_packaging=checklist.is_original_packaging,
            is_unused=checklist.is_unused,
            all_accessories_present=checklist.all_accessories_present,
            has_physical_damage=checklist.has_physical_damage,
            imei_match=checklist.imei_match,
            missing_accessories=checklist.missing_accessories,
            images=checklist.images,
            notes=checklist.notes,
            status=status,
        )

        record = (
            await self.db.execute(select(ReturnQCChecklist).where(ReturnQCChecklist.order_id == order_id))
        ).scalar_one_or_none()
        try:
            if record:
                for key, value in values.items():
                    setattr(record, key, value)
            else:
                record = ReturnQCChecklist(order_id=order_id, **values)
                self.db.add(record)
            await self.db.flush()

            if status == QCStatus.PASSED.value:
                await self.order_validator.apply_transition(
                    order,
                    OrderStatus.RETURN_RECEIVED.value,
                    actor_id=inspector_id,
                    actor_role=inspector_role,
                    notes=f"QC passed ({checklist.schema_version})",
                    allow_override=True,
                    commit=False,
                )
            await self.db.commit()
        except Exception as e:
            logger.error(f"Recording QC for order {order.order_number} failed: {e}")
            await self.db.rollback()
            raise

        if status == QCStatus.FAILED.value:
            logger.warning(
                f"QC failed for order {order.order_number} ({checklist.schema_version}); manual follow-up required"
            )
        return record

    async def inspect_return(
        self,
        return_id: uuid.UUID,
        inspector_id: Optional[uuid.UUID],
        checklist: QCChecklistSubmit,
    ) -> ReturnRequest:
        """Grade the return's order and move the return to QC_PASSED or QC_FAILED."""
        return_request = await self.find_one(return_id)
        next_status = (
            ReturnStatus.QC_PASSED
            if evaluate_qc_checklist(checklist) == QCStatus.PASSED.value
            else ReturnStatus.QC_FAILED
        )
        # Nothing is recorded unless the return can take the verdict
        if (
            next_status.value != return_request.status
            and next_status.value not in RETURN_TRANSITIONS.get(return_request.status, [])
        ):
            raise BadRequestError(f"Cannot move return from {return_request.status} to {next_status.value}")

        await self.submit_qc_checklist(return_request.order_id, inspector_id, checklist)
        return await self.update_status(
            return_id,
            ReturnStatusUpdate(status=next_status, notes=checklist.notes),
            inspector_id,
        )

    # ==================== VENDOR ====================

    async def _get_vendor_return(self, vendor_id: uuid.UUID, return_id: uuid.UUID) -> ReturnRequest:
        return_request = await self.find_one(return_id)
        if return_request.vendor_id != vendor_id:
            raise ForbiddenError("Return request does not belong to this vendor")
        return return_request

    async def accept_return(
        self,
        vendor_id: uuid.UUID,
        return_id: uuid.UUID,
        user_id: uuid.UUID,
        notes: Optional[str] = None,
    ) -> ReturnRequest:
        return_request = await self._get_vendor_return(vendor_id, return_id)
        if return_request.status != ReturnStatus.PENDING_APPROVAL.value:
            raise BadRequestError(
                f"Cannot accept return in {return_request.status} status. "
                f"Only PENDING_APPROVAL returns can be accepted."
            )
        return await self.update_status(
            return_id,
            ReturnStatusUpdate(status=ReturnStatus.APPROVED, notes=notes or "Accepted by vendor"),
            user_id,
            performed_by=ReturnActor.VENDOR.value,
        )

    async def reject_return(
        self,
        vendor_id: uuid.UUID,
        return_id: uuid.UUID,
        user_id: uuid.UUID,
        reason: str,
    ) -> ReturnRequest:
        return_request = await self._get_vendor_return(vendor_id, return_id)
        if return_request.status != ReturnStatus.PENDING_APPROVAL.value:
            raise BadRequestError(
                f"Cannot reject return in {return_request.status} status. "
                f"Only PENDING_APPROVAL returns can be rejected."
            )
        return await self.update_status(
            return_id,
            ReturnStatusUpdate(status=ReturnStatus.REJECTED, rejection_reason=reason, notes=reason),
            user_id,
            performed_by=ReturnActor.VENDOR.value,
        )

    async def get_vendor_stats(self, vendor_id: uuid.UUID) -> Dict[str, int]:
        rows = await self.db.execute(
            select(ReturnRequest.status, func.count())
            .where(ReturnRequest.vendor_id == vendor_id)
            .group_by(ReturnRequest.status)
        )
        by_status = {status: count for status, count in rows.all()}

        since = datetime.now(timezone.utc) - timedelta(days=30)
        recent = await self.db.execute(
            select(func.count()).select_from(ReturnRequest).where(
                ReturnRequest.vendor_id == vendor_id,
                ReturnRequest.requested_at >= since,
            )
        )

        pending = by_status.get(ReturnStatus.PENDING_APPROVAL.value, 0)
        rejected = by_status.get(ReturnStatus.REJECTED.value, 0)
        total = sum(by_status.values())
        return {
            "total": total,
            "pending": pending,
            "approved": total - pending - rejected,
            "rejected": rejected,
            "qc_failed": by_status.get(ReturnStatus.QC_FAILED.value, 0),
            "replacement_shipped": by_status.get(ReturnStatus.REPLACEMENT_SHIPPED.value, 0),
            "last_30_days": recent.scalar() or 0,
        }
