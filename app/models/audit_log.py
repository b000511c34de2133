import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import JSONType, UUIDType


class AuditLog(Base):
    """
    Audit log model for privileged and policy-relevant actions.
    Records: status overrides, illegal transition attempts, refund overrides,
    packing video uploads, etc. Rows are never updated or deleted.
    """
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    # Who performed the action
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True, index=True)

    # Action details
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # Actions: ORDER_STATUS_CHANGED, ORDER_STATUS_OVERRIDE, ATTEMPTED_ILLEGAL_STATE_TRANSITION,
    #          FORCE_REFUND_APPROVE, FORCE_REFUND_PROCESS, REFUND_REJECT, PACKING_VIDEO_UPLOADED

    # Entity being modified
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Entity types: Order, ReturnRequest, Refund, OrderPackingProof

    entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Request metadata
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<AuditLog(action='{self.action}', entity='{self.entity_type}', id='{self.entity_id}')>"
