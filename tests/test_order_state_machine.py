"""Tests for the pure order transition rules."""

import pytest

from app.core.exceptions import BadRequestError, ForbiddenError
from app.models.order import OrderStatus as S, PaymentMode
from app.models.user import UserRole
from app.services import order_state_machine as sm


ONLINE = PaymentMode.ONLINE.value
COD = PaymentMode.COD.value
VENDOR = UserRole.VENDOR.value
CUSTOMER = UserRole.CUSTOMER.value
ADMIN = UserRole.ADMIN.value
SUPPORT = UserRole.SUPPORT.value


class TestForwardFlow:
    @pytest.mark.parametrize(
        "current,nxt",
        [
            (S.PENDING_PAYMENT, S.PAID),
            (S.PAID, S.PACKED),
            (S.PACKED, S.SHIPPED),
            (S.SHIPPED, S.DELIVERED),
        ],
    )
    def test_online_flow_accepts_each_next_step(self, current, nxt):
        sm.validate_transition(current.value, nxt.value, SUPPORT, ONLINE)

    def test_cod_flow_goes_straight_from_confirmed_to_packed(self):
        sm.validate_transition(S.CONFIRMED.value, S.PACKED.value, VENDOR, COD)

    def test_created_can_enter_either_flow(self):
        sm.validate_transition(S.CREATED.value, S.PENDING_PAYMENT.value, SUPPORT, ONLINE)
        sm.validate_transition(S.CREATED.value, S.CONFIRMED.value, SUPPORT, COD)

    def test_skipping_a_state_is_rejected(self):
        with pytest.raises(BadRequestError) as exc:
            sm.validate_transition(S.PENDING_PAYMENT.value, S.PACKED.value, VENDOR, ONLINE)
        assert exc.value.detail == "Cannot skip states PENDING_PAYMENT to PACKED"

    def test_backward_move_is_rejected(self):
        with pytest.raises(BadRequestError) as exc:
            sm.validate_transition(S.SHIPPED.value, S.PACKED.value, VENDOR, ONLINE)
        assert exc.value.detail == "State transitions must be forward-only"

    def test_state_outside_the_payment_flow_is_invalid(self):
        with pytest.raises(BadRequestError) as exc:
            sm.validate_transition(S.CONFIRMED.value, S.PAID.value, SUPPORT, COD)
        assert "Invalid status transition" in exc.value.detail

    def test_delivered_may_be_followed_by_return_request(self):
        sm.validate_transition(S.DELIVERED.value, S.RETURN_REQUESTED.value, SUPPORT, ONLINE)

    def test_delivered_cannot_go_back_to_shipped(self):
        assert not sm.can_transition(S.DELIVERED.value, S.SHIPPED.value, SUPPORT, ONLINE)


class TestRoles:
    def test_customer_cannot_set_status_directly(self):
        with pytest.raises(ForbiddenError):
            sm.validate_transition(S.PAID.value, S.PACKED.value, CUSTOMER, ONLINE)

    def test_vendor_limited_to_packed_and_shipped(self):
        with pytest.raises(ForbiddenError):
            sm.validate_transition(S.SHIPPED.value, S.DELIVERED.value, VENDOR, ONLINE)

    def test_vendor_still_follows_flow_order(self):
        assert not sm.can_transition(S.PAID.value, S.SHIPPED.value, VENDOR, ONLINE)

    def test_admin_may_jump_anywhere_outside_terminal_states(self):
        sm.validate_transition(S.PENDING_PAYMENT.value, S.DELIVERED.value, ADMIN, ONLINE)
        sm.validate_transition(S.SHIPPED.value, S.PACKED.value, UserRole.SUPER_ADMIN.value, ONLINE)

    def test_roles_accept_enum_members(self):
        sm.validate_transition(S.PAID, S.PACKED, UserRole.VENDOR, PaymentMode.ONLINE)


class TestTerminalStates:
    @pytest.mark.parametrize("terminal", [S.CANCELLED, S.RETURN_REQUESTED, S.REPLACED])
    @pytest.mark.parametrize("role", [ADMIN, VENDOR, CUSTOMER, SUPPORT])
    def test_hard_terminal_states_are_locked(self, terminal, role):
        with pytest.raises(BadRequestError) as exc:
            sm.validate_transition(terminal.value, S.PAID.value, role, ONLINE)
        assert exc.value.detail == f"Order is in terminal state {terminal.value}"

    def test_delivered_is_terminal_but_not_locked(self):
        assert sm.is_terminal(S.DELIVERED.value)
        assert S.DELIVERED.value not in sm.HARD_TERMINAL_STATES

    def test_replaced_reachable_from_delivered(self):
        sm.validate_transition(S.DELIVERED.value, S.REPLACED.value, SUPPORT, COD)


class TestCancellation:
    @pytest.mark.parametrize("current", [S.CREATED, S.PENDING_PAYMENT, S.CONFIRMED, S.PAID])
    def test_customer_can_cancel_before_packing(self, current):
        sm.validate_transition(current.value, S.CANCELLED.value, CUSTOMER, ONLINE)

    @pytest.mark.parametrize("current", [S.PACKED, S.SHIPPED, S.DELIVERED])
    def test_customer_cannot_cancel_after_packing(self, current):
        with pytest.raises(BadRequestError) as exc:
            sm.validate_transition(current.value, S.CANCELLED.value, CUSTOMER, ONLINE)
        assert exc.value.detail == "Cannot cancel order after it has been packed"

    def test_vendor_may_cancel_packed_order(self):
        sm.validate_transition(S.PACKED.value, S.CANCELLED.value, VENDOR, ONLINE)


class TestHelpers:
    @pytest.mark.parametrize(
        "mode,provider,expected",
        [
            ("COD", None, COD),
            ("ONLINE", "cash", COD),
            ("ONLINE", "RAZORPAY", ONLINE),
            (None, None, ONLINE),
        ],
    )
    def test_resolve_payment_mode(self, mode, provider, expected):
        assert sm.resolve_payment_mode(mode, provider) == expected

    def test_allowed_transitions_for_vendor(self):
        assert sm.get_allowed_transitions(S.PAID.value, VENDOR, ONLINE) == [
            S.PACKED.value,
            S.CANCELLED.value,
        ]

    def test_allowed_transitions_for_customer(self):
        assert sm.get_allowed_transitions(S.CONFIRMED.value, CUSTOMER, COD) == [S.CANCELLED.value]

    def test_no_transitions_from_terminal_state(self):
        assert sm.get_allowed_transitions(S.CANCELLED.value, ADMIN, ONLINE) == []

    def test_unknown_role_uses_flow_rules(self):
        assert sm.policy_for("TELECALLER").__class__ is sm.TransitionPolicy
        assert sm.policy_for(UserRole.ADMIN).__class__ is sm.AdminPolicy
