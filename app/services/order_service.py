"""
Order Service

Actor-facing order operations: admin and vendor status updates, customer
cancellation and admin dispatch. Each path runs the packing proof gate
before the state machine and persists through OrderStateValidatorService.
"""
import logging
import uuid
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.models.order import Order, OrderStatus
from app.models.user import User, UserRole
from app.services import order_state_machine
from app.services.inventory_service import InventoryService
from app.services.order_state_validator import OrderStateValidatorService
from app.services.packing_proof_service import PackingProofService, VideoUpload, ObjectStorage
from app.core.storage import StorageClient


logger = logging.getLogger(__name__)

# Cancelling before dispatch returns the goods to the shelf
RESTOCK_ON_CANCEL_STATES = order_state_machine.CUSTOMER_CANCELLABLE_STATES | {OrderStatus.PACKED.value}


class OrderService:
    """Service for order status operations across customer, vendor and admin."""

    def __init__(self, db: AsyncSession, storage: ObjectStorage = StorageClient):
        self.db = db
        self.validator = OrderStateValidatorService(db)
        self.packing_proof = PackingProofService(db, storage)
        self.inventory = InventoryService(db)

    async def get_order(self, order_id: uuid.UUID) -> Order:
        return await self.validator.get_order(order_id)

    async def get_allowed_transitions(self, order_id: uuid.UUID, role: str) -> List[str]:
        order = await self.get_order(order_id)
        payment_mode = order_state_machine.resolve_payment_mode(order.payment_mode, order.payment_provider)
        return self.validator.get_valid_next_states(order.status, role, payment_mode)

    async def admin_update_status(
        self,
        order_id: uuid.UUID,
        new_status: str,
        admin: User,
        notes: Optional[str] = None,
        allow_override: bool = False,
    ) -> Order:
        """
        Admin status change. Admins bypass the flow but not the packing proof gate.

        Cancelling an order that has not shipped yet puts its snapshot lines
        back into stock, same as a customer cancellation. Once SHIPPED the
        goods are in transit and come back through the returns workflow.
        """
        order = await self.get_order(order_id)
        await self.packing_proof.enforce_gate(order.id, new_status)

        previous_status = order.status
        restock = (
            new_status == OrderStatus.CANCELLED.value
            and previous_status in RESTOCK_ON_CANCEL_STATES
        )
        if not restock:
            return await self.validator.apply_transition(
                order,
                new_status,
                actor_id=admin.id,
                actor_role=admin.role,
                notes=notes,
                allow_override=allow_override,
            )

        await self.validator.apply_transition(
            order,
            new_status,
            actor_id=admin.id,
            actor_role=admin.role,
            notes=notes,
            allow_override=allow_override,
            commit=False,
        )
        order.cancellation_reason = notes
        await self._restore_snapshot_stock(order)
        logger.info(f"Order {order.order_number} cancelled by admin {admin.id}; stock restored")
        return order

    async def vendor_update_status(
        self,
        vendor_id: uuid.UUID,
        order_id: uuid.UUID,
        new_status: str,
        user: User,
        notes: Optional[str] = None,
    ) -> Order:
        """Vendor marks one of their orders PACKED or SHIPPED."""
        order = await self.get_order(order_id)
        if str(vendor_id) not in order.vendor_ids:
            raise ForbiddenError("Order does not belong to you")

        await self.packing_proof.enforce_gate(order.id, new_status)
        return await self.validator.apply_transition(
            order,
            new_status,
            actor_id=user.id,
            actor_role=UserRole.VENDOR.value,
            notes=notes,
        )

    async def cancel_order(
        self,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> Order:
        """Customer cancellation; puts every snapshot line back into stock."""
        result = await self.db.execute(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        if order.status == OrderStatus.CANCELLED.value:
            raise BadRequestError("Order is already cancelled")

        await self.validator.apply_transition(
            order,
            OrderStatus.CANCELLED.value,
            actor_id=user_id,
            actor_role=UserRole.CUSTOMER.value,
            notes=reason,
            commit=False,
        )
        order.cancellation_reason = reason
        await self._restore_snapshot_stock(order)

        logger.info(f"Order {order.order_number} cancelled by customer {user_id}")
        return order

    async def _restore_snapshot_stock(self, order: Order) -> None:
        """Restock every snapshot line and commit with the pending status change."""
        try:
            for item in order.items_snapshot or []:
                await self.inventory.restore_stock(
                    uuid.UUID(str(item["product_id"])),
                    int(item.get("quantity", 1)),
                    item.get("variant_id"),
                )
            await self.db.commit()
        except Exception as e:
            logger.error(f"Cancelling order {order.order_number} failed: {e}")
            await self.db.rollback()
            raise

    async def mark_shipped(
        self,
        order_id: uuid.UUID,
        admin: User,
        file: Optional[VideoUpload] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """Admin dispatch; accepts the packing video in the same call when none is on record."""
        if file is not None and not await self.packing_proof.has_proof(order_id):
            await self.packing_proof.upload_packing_video(None, admin.id, order_id, file)
        return await self.admin_update_status(
            order_id, OrderStatus.SHIPPED.value, admin, notes=notes
        )
