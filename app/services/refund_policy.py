"""
Refund policy: returns are settled by replacement, never by money.

`check_refund_policy` is the single decision point every refund-mutating
entrypoint calls first, so grepping for it finds every override use.
"""
from typing import Optional

from app.core.exceptions import RefundPolicyDecision


BLOCKED_MESSAGE = (
    "Refunds are blocked by policy. Use replacement workflow, or pass "
    "force_refund=true with an admin reason (audited)."
)
REASON_REQUIRED_MESSAGE = "reason is required when force_refund=true"


def check_refund_policy(force_refund: bool = False, reason: Optional[str] = None) -> RefundPolicyDecision:
    """Decide whether a refund write may proceed."""
    reason_supplied = bool(reason and reason.strip())

    if not force_refund:
        return RefundPolicyDecision(
            allowed=False,
            override_attempted=False,
            reason_supplied=reason_supplied,
            message=BLOCKED_MESSAGE,
        )
    if not reason_supplied:
        return RefundPolicyDecision(
            allowed=False,
            override_attempted=True,
            reason_supplied=False,
            message=REASON_REQUIRED_MESSAGE,
        )
    return RefundPolicyDecision(
        allowed=True,
        override_attempted=True,
        reason_supplied=True,
        message="Refund override accepted",
    )
