"""Tests for persisted order transitions: audit, override and concurrent updates."""

import pytest
from sqlalchemy import select, update

from app.core.exceptions import BadRequestError, ConflictError, ForbiddenError
from app.models.audit_log import AuditLog
from app.models.order import Order, OrderStatus, OrderStatusHistory, PaymentMode
from app.models.user import UserRole
from app.services.order_state_validator import OrderStateValidatorService


async def _audit_actions(db, order_id):
    result = await db.execute(
        select(AuditLog.action).where(AuditLog.entity_id == str(order_id)).order_by(AuditLog.created_at)
    )
    return [row[0] for row in result.all()]


class TestApplyTransition:
    async def test_regular_transition_writes_history_and_audit(self, db_session, make_order, product, admin):
        order = await make_order(product, OrderStatus.PENDING_PAYMENT)
        validator = OrderStateValidatorService(db_session)

        await validator.apply_transition(order, OrderStatus.PAID.value, admin.id, UserRole.SUPPORT.value)

        stored = (await db_session.execute(select(Order).where(Order.id == order.id))).scalar_one()
        assert stored.status == OrderStatus.PAID.value

        history = (
            await db_session.execute(select(OrderStatusHistory).where(OrderStatusHistory.order_id == order.id))
        ).scalars().all()
        assert len(history) == 1
        assert history[0].from_status == OrderStatus.PENDING_PAYMENT.value
        assert history[0].to_status == OrderStatus.PAID.value
        assert history[0].is_override is False

        assert await _audit_actions(db_session, order.id) == ["ORDER_STATUS_CHANGED"]

    async def test_same_status_is_a_no_op(self, db_session, make_order, product, admin):
        order = await make_order(product, OrderStatus.PAID)
        validator = OrderStateValidatorService(db_session)

        await validator.apply_transition(order, OrderStatus.PAID.value, admin.id, UserRole.VENDOR.value)

        assert await _audit_actions(db_session, order.id) == []

    async def test_illegal_attempt_is_audited_then_raised(self, db_session, make_order, product, vendor_user):
        order = await make_order(product, OrderStatus.PENDING_PAYMENT)
        validator = OrderStateValidatorService(db_session)

        with pytest.raises(BadRequestError):
            await validator.apply_transition(order, OrderStatus.SHIPPED.value, vendor_user.id, UserRole.VENDOR.value)

        assert await _audit_actions(db_session, order.id) == ["ATTEMPTED_ILLEGAL_STATE_TRANSITION"]
        stored = (await db_session.execute(select(Order.status).where(Order.id == order.id))).scalar_one()
        assert stored == OrderStatus.PENDING_PAYMENT.value

    async def test_vendor_cannot_use_override(self, db_session, make_order, product, vendor_user):
        order = await make_order(product, OrderStatus.PAID)
        validator = OrderStateValidatorService(db_session)

        with pytest.raises(ForbiddenError):
            await validator.apply_transition(
                order, OrderStatus.DELIVERED.value, vendor_user.id, UserRole.VENDOR.value, allow_override=True
            )

    async def test_admin_override_unlocks_terminal_state_and_is_audited(
        self, db_session, make_order, product, admin
    ):
        order = await make_order(product, OrderStatus.CANCELLED)
        validator = OrderStateValidatorService(db_session)

        await validator.apply_transition(
            order, OrderStatus.PAID.value, admin.id, admin.role, notes="Payment reconciled", allow_override=True
        )

        assert order.status == OrderStatus.PAID.value
        assert await _audit_actions(db_session, order.id) == ["ORDER_STATUS_OVERRIDE", "ORDER_STATUS_CHANGED"]
        history = (
            await db_session.execute(select(OrderStatusHistory).where(OrderStatusHistory.order_id == order.id))
        ).scalar_one()
        assert history.is_override is True

    async def test_admin_without_override_flag_is_still_locked_out(self, db_session, make_order, product, admin):
        order = await make_order(product, OrderStatus.REPLACED)
        validator = OrderStateValidatorService(db_session)

        with pytest.raises(BadRequestError):
            await validator.apply_transition(order, OrderStatus.PAID.value, admin.id, admin.role)

    async def test_lost_race_raises_conflict(self, db_session, make_order, product, vendor_user):
        order = await make_order(product, OrderStatus.PAID)

        # Another actor moves the order after we loaded it
        await db_session.execute(
            update(Order)
            .where(Order.id == order.id)
            .values(status=OrderStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        await db_session.commit()

        validator = OrderStateValidatorService(db_session)
        with pytest.raises(ConflictError):
            await validator.apply_transition(order, OrderStatus.PACKED.value, vendor_user.id, UserRole.VENDOR.value)


class TestValidNextStates:
    async def test_cod_order_next_states_for_vendor(self, db_session):
        validator = OrderStateValidatorService(db_session)
        assert validator.get_valid_next_states(
            OrderStatus.CONFIRMED.value, UserRole.VENDOR.value, PaymentMode.COD.value
        ) == [OrderStatus.PACKED.value, OrderStatus.CANCELLED.value]
