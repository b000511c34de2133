"""
Order State Machine

This module is the SINGLE SOURCE OF TRUTH for order status transitions.
It is pure: given (current, next, actor role, payment mode) it either
returns or raises. Persistence and audit live in OrderStateValidatorService.

Flows (forward-only, no skipping):
- ONLINE: PENDING_PAYMENT -> PAID -> PACKED -> SHIPPED -> DELIVERED
- COD:    CONFIRMED -> PACKED -> SHIPPED -> DELIVERED
"""

from collections import deque
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Type

from app.core.exceptions import BadRequestError, ForbiddenError
from app.models.order import OrderStatus, PaymentMode
from app.models.user import UserRole


S = OrderStatus


# =============================================================================
# STATE SETS
# =============================================================================

# DELIVERED is terminal for fulfilment but still permits RETURN_REQUESTED / REPLACED
TERMINAL_STATES: FrozenSet[str] = frozenset({
    S.DELIVERED.value, S.CANCELLED.value, S.RETURN_REQUESTED.value, S.RETURN_RECEIVED.value, S.REPLACED.value,
})

HARD_TERMINAL_STATES: FrozenSet[str] = TERMINAL_STATES - {S.DELIVERED.value}

# Customers may cancel only before the vendor has packed the order
CUSTOMER_CANCELLABLE_STATES: FrozenSet[str] = frozenset({
    S.CREATED.value, S.PENDING_PAYMENT.value, S.CONFIRMED.value, S.PAID.value,
})

VENDOR_TARGET_STATES: FrozenSet[str] = frozenset({S.PACKED.value, S.SHIPPED.value})


# =============================================================================
# TRANSITION GRAPHS
# =============================================================================

# Format: current_status -> [allowed next statuses]
ONLINE_FLOW: Dict[str, List[str]] = {
    S.PENDING_PAYMENT.value: [S.PAID.value],
    S.PAID.value: [S.PACKED.value],
    S.PACKED.value: [S.SHIPPED.value],
    S.SHIPPED.value: [S.DELIVERED.value],
    S.DELIVERED.value: [],
}

COD_FLOW: Dict[str, List[str]] = {
    S.CONFIRMED.value: [S.PACKED.value],
    S.PACKED.value: [S.SHIPPED.value],
    S.SHIPPED.value: [S.DELIVERED.value],
    S.DELIVERED.value: [],
}

FLOWS: Dict[str, Dict[str, List[str]]] = {
    PaymentMode.ONLINE.value: ONLINE_FLOW,
    PaymentMode.COD.value: COD_FLOW,
}

# Entry into either flow from a freshly created order
BOOTSTRAP_TRANSITIONS: Dict[str, List[str]] = {
    S.CREATED.value: [S.PENDING_PAYMENT.value, S.CONFIRMED.value],
}


# =============================================================================
# HELPERS
# =============================================================================

def _value(status) -> str:
    return status.value if isinstance(status, Enum) else str(status)


def resolve_payment_mode(payment_mode: Optional[str], payment_provider: Optional[str] = None) -> str:
    """COD when the mode or the provider says so; ONLINE otherwise."""
    for value in (payment_mode, payment_provider):
        if value and _value(value).upper() in ("COD", "CASH"):
            return PaymentMode.COD.value
    return PaymentMode.ONLINE.value


def is_terminal(status: str) -> bool:
    return _value(status) in TERMINAL_STATES


def _steps_between(flow: Dict[str, List[str]], start: str, target: str) -> Optional[int]:
    """Number of forward edges from start to target, or None if unreachable."""
    seen = {start}
    queue = deque([(start, 0)])
    while queue:
        node, depth = queue.popleft()
        if node == target:
            return depth
        for nxt in flow.get(node, []):
            if nxt not in seen:
                seen.add(nxt)
                queue.append((nxt, depth + 1))
    return None


def check_flow(current: str, next_status: str, payment_mode: str) -> None:
    """
    Validate a move along the payment-mode flow graph.

    Raises:
        BadRequestError: unknown move, backward/no-op move, or a skipped state
    """
    if next_status in BOOTSTRAP_TRANSITIONS.get(current, []):
        return

    flow = FLOWS[resolve_payment_mode(payment_mode)]

    if current not in flow or next_status not in flow:
        if current == S.DELIVERED.value and next_status == S.RETURN_REQUESTED.value:
            return
        if next_status == S.REPLACED.value:
            return
        raise BadRequestError(f"Invalid status transition from {current} to {next_status}")

    if next_status in flow[current]:
        return

    steps = _steps_between(flow, current, next_status)
    if steps is None or steps == 0:
        raise BadRequestError("State transitions must be forward-only")
    raise BadRequestError(f"Cannot skip states {current} to {next_status}")


def check_cancellation(current: str, role: str) -> None:
    if role == UserRole.CUSTOMER.value and current not in CUSTOMER_CANCELLABLE_STATES:
        raise BadRequestError("Cannot cancel order after it has been packed")


# =============================================================================
# ROLE POLICIES
# =============================================================================

class TransitionPolicy:
    """Default policy: the payment-mode flow decides."""

    def check(self, current: str, next_status: str, payment_mode: str) -> None:
        check_flow(current, next_status, payment_mode)


class AdminPolicy(TransitionPolicy):
    """Admins may move an order anywhere outside the hard-terminal states."""

    def check(self, current: str, next_status: str, payment_mode: str) -> None:
        return None


class VendorPolicy(TransitionPolicy):
    def check(self, current: str, next_status: str, payment_mode: str) -> None:
        if next_status not in VENDOR_TARGET_STATES:
            raise ForbiddenError("Vendors can only mark PACKED or SHIPPED")
        super().check(current, next_status, payment_mode)


class CustomerPolicy(TransitionPolicy):
    def check(self, current: str, next_status: str, payment_mode: str) -> None:
        raise ForbiddenError("Customers cannot change status directly")


ROLE_POLICIES: Dict[str, Type[TransitionPolicy]] = {
    UserRole.ADMIN.value: AdminPolicy,
    UserRole.SUPER_ADMIN.value: AdminPolicy,
    UserRole.VENDOR.value: VendorPolicy,
    UserRole.CUSTOMER.value: CustomerPolicy,
}


def policy_for(role: str) -> TransitionPolicy:
    return ROLE_POLICIES.get(_value(role), TransitionPolicy)()


# =============================================================================
# ENTRY POINTS
# =============================================================================

def validate_transition(
    current_status: str,
    new_status: str,
    role: str,
    payment_mode: str = PaymentMode.ONLINE.value,
) -> None:
    """
    Validate an order status transition for an actor.

    Raises:
        BadRequestError: terminal state, illegal move, late customer cancellation
        ForbiddenError: the role may not request this transition
    """
    current = _value(current_status)
    nxt = _value(new_status)
    role = _value(role)

    if current in HARD_TERMINAL_STATES:
        raise BadRequestError(f"Order is in terminal state {current}")

    if nxt == S.CANCELLED.value:
        check_cancellation(current, role)
        return

    policy_for(role).check(current, nxt, payment_mode)


def can_transition(
    current_status: str,
    new_status: str,
    role: str,
    payment_mode: str = PaymentMode.ONLINE.value,
) -> bool:
    """Check if a transition is allowed without raising."""
    try:
        validate_transition(current_status, new_status, role, payment_mode)
    except (BadRequestError, ForbiddenError):
        return False
    return True


def get_allowed_transitions(
    current_status: str,
    role: str,
    payment_mode: str = PaymentMode.ONLINE.value,
) -> List[str]:
    """Statuses the actor could move the order to from its current status."""
    current = _value(current_status)
    return [
        status.value for status in OrderStatus
        if status.value != current
        and can_transition(current, status.value, role, payment_mode)
    ]
