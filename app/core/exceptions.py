"""
HTTP-aware error types raised from the service layer.

Services raise these directly; FastAPI renders them with the carried
status code and detail, so endpoints never have to translate them.
"""
from dataclasses import dataclass

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    """Illegal state transition, invalid upload, insufficient stock."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ForbiddenError(HTTPException):
    """Role violation or acting on a resource owned by someone else."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    """The row changed underneath us (lost compare-and-swap)."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


@dataclass(frozen=True)
class RefundPolicyDecision:
    """Outcome of the replacement-only refund policy check."""
    allowed: bool
    override_attempted: bool
    reason_supplied: bool
    message: str


class RefundPolicyBlockedError(HTTPException):
    """
    Monetary refunds are blocked by policy.

    Kept apart from the generic taxonomy so every refund block and every
    override attempt can be found by type.
    """

    def __init__(self, decision: RefundPolicyDecision):
        self.decision = decision
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": decision.message,
                "policy": "REPLACEMENT_ONLY",
                "override_attempted": decision.override_attempted,
                "reason_supplied": decision.reason_supplied,
            },
        )
