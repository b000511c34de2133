"""
Order State Validator

Wraps the pure order state machine with audit side effects, admin override
semantics and the compare-and-swap status write. Every order status change
goes through `apply_transition`.
"""
import logging
import uuid
from typing import Optional, List

from fastapi import HTTPException
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.order import Order, OrderStatusHistory, PaymentMode
from app.models.user import ADMIN_ROLES
from app.services import order_state_machine
from app.services.audit_service import AuditService


logger = logging.getLogger(__name__)


class OrderStateValidatorService:
    """Validates and persists order status transitions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def validate_transition(
        self,
        current_status: str,
        new_status: str,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        actor_role: str,
        allow_override: bool = False,
        payment_mode: str = PaymentMode.ONLINE.value,
    ) -> bool:
        """
        Validate a transition for an actor.

        Returns True when the move was accepted through an admin override,
        False for a regular transition. Same-status requests are a no-op.

        Raises:
            BadRequestError / ForbiddenError: the move is illegal and not overridden
        """
        if current_status == new_status:
            return False

        try:
            order_state_machine.validate_transition(current_status, new_status, actor_role, payment_mode)
            return False
        except HTTPException as e:
            if allow_override and actor_role in ADMIN_ROLES:
                logger.warning(
                    f"Admin override on order {order_id}: {current_status} -> {new_status} "
                    f"by {actor_id} ({e.detail})"
                )
                await self.audit.log_admin_action(
                    actor_id,
                    "ORDER_STATUS_OVERRIDE",
                    "Order",
                    order_id,
                    {
                        "from": current_status,
                        "to": new_status,
                        "role": actor_role,
                        "bypassed": e.detail,
                    },
                )
                return True

            logger.warning(
                f"Illegal transition attempt on order {order_id}: {current_status} -> {new_status} "
                f"by {actor_role} {actor_id}: {e.detail}"
            )
            await self._record_illegal_attempt(current_status, new_status, order_id, actor_id, actor_role, e.detail)
            raise

    async def _record_illegal_attempt(
        self,
        current_status: str,
        new_status: str,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        actor_role: str,
        error: str,
    ) -> None:
        # Best effort; nothing else is pending on the session at this point.
        try:
            await self.audit.log_admin_action(
                actor_id,
                "ATTEMPTED_ILLEGAL_STATE_TRANSITION",
                "Order",
                order_id,
                {"from": current_status, "to": new_status, "role": actor_role, "error": error},
            )
            await self.db.commit()
        except Exception as audit_error:
            await self.db.rollback()
            logger.warning(f"Could not audit illegal transition on order {order_id}: {audit_error}")

    def get_valid_next_states(
        self,
        current_status: str,
        actor_role: str,
        payment_mode: str = PaymentMode.ONLINE.value,
    ) -> List[str]:
        return order_state_machine.get_allowed_transitions(current_status, actor_role, payment_mode)

    async def apply_transition(
        self,
        order: Order,
        new_status: str,
        actor_id: Optional[uuid.UUID],
        actor_role: str,
        notes: Optional[str] = None,
        allow_override: bool = False,
        commit: bool = True,
    ) -> Order:
        """
        Validate and persist an order status change.

        The write is conditional on the status we validated against, so a
        concurrent update by another actor surfaces as a ConflictError
        instead of being silently overwritten.
        """
        previous_status = order.status
        if previous_status == new_status:
            return order

        payment_mode = order_state_machine.resolve_payment_mode(order.payment_mode, order.payment_provider)
        overridden = await self.validate_transition(
            previous_status,
            new_status,
            order.id,
            actor_id,
            actor_role,
            allow_override=allow_override,
            payment_mode=payment_mode,
        )

        result = await self.db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == previous_status)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError(
                f"Order {order.order_number} changed status concurrently; reload and retry"
            )
        order.status = new_status

        self.db.add(OrderStatusHistory(
            order_id=order.id,
            from_status=previous_status,
            to_status=new_status,
            changed_by=actor_id,
            actor_role=actor_role,
            notes=notes,
            is_override=overridden,
        ))
        await self.audit.log(
            action="ORDER_STATUS_CHANGED",
            entity_type="Order",
            entity_id=order.id,
            actor_id=actor_id,
            details={"from": previous_status, "to": new_status, "role": actor_role, "override": overridden},
        )

        if commit:
            await self.db.commit()

        logger.info(f"Order {order.order_number}: {previous_status} -> {new_status} by {actor_role} {actor_id}")
        return order

    async def get_order(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order
