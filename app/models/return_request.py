"""
Return Request Models

Customer return requests against delivered orders, their line items and
timeline, the replacement order link and the QC inspection checklist.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, Boolean, DateTime, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import JSONType, UUIDType

if TYPE_CHECKING:
    from app.models.order import Order


class ReturnStatus(str, Enum):
    """Return lifecycle. Refund-named states are replacement bookkeeping."""
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PICKUP_SCHEDULED = "PICKUP_SCHEDULED"
    PICKUP_COMPLETED = "PICKUP_COMPLETED"
    IN_TRANSIT = "IN_TRANSIT"
    RECEIVED_AT_WAREHOUSE = "RECEIVED_AT_WAREHOUSE"
    QC_IN_PROGRESS = "QC_IN_PROGRESS"
    QC_PASSED = "QC_PASSED"
    QC_FAILED = "QC_FAILED"
    REPLACEMENT_SHIPPED = "REPLACEMENT_SHIPPED"
    REFUND_INITIATED = "REFUND_INITIATED"
    REFUND_COMPLETED = "REFUND_COMPLETED"


class ReturnReason(str, Enum):
    DAMAGED_PRODUCT = "DAMAGED_PRODUCT"
    WRONG_ITEM = "WRONG_ITEM"
    MISSING_PARTS = "MISSING_PARTS"
    QUALITY_ISSUE = "QUALITY_ISSUE"
    SIZE_FIT_ISSUE = "SIZE_FIT_ISSUE"
    OTHER = "OTHER"


class ReturnActor(str, Enum):
    """Who performed a timeline action."""
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"


class QCStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"


class ReturnRequest(Base):
    """
    One return attempt against a delivered order.
    Status moves through approval, QC and replacement; timeline is append-only.
    """
    __tablename__ = "return_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    return_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Human readable, e.g. RET-2026-004821"
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id"),
        nullable=False,
        index=True
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("vendors.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    evidence_images: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    evidence_video: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pickup_address: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    status: Mapped[str] = mapped_column(
        String(50),
        default=ReturnStatus.PENDING_APPROVAL.value,
        nullable=False,
        index=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    replacement_tracking_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    stock_restored_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set once returned items are put back into stock"
    )

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order")
    items: Mapped[List["ReturnItem"]] = relationship(
        "ReturnItem",
        back_populates="return_request",
        cascade="all, delete-orphan"
    )
    timeline: Mapped[List["ReturnTimeline"]] = relationship(
        "ReturnTimeline",
        back_populates="return_request",
        cascade="all, delete-orphan",
        order_by="ReturnTimeline.timestamp"
    )
    replacement: Mapped[Optional["ReplacementOrder"]] = relationship(
        "ReplacementOrder",
        back_populates="return_request",
        uselist=False
    )

    def __repr__(self) -> str:
        return f"<ReturnRequest(number='{self.return_number}', status='{self.status}')>"


class ReturnItem(Base):
    __tablename__ = "return_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    return_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("return_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("products.id"),
        nullable=False
    )
    variant_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    condition: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    return_request: Mapped["ReturnRequest"] = relationship("ReturnRequest", back_populates="items")

    def __repr__(self) -> str:
        return f"<ReturnItem(product_id='{self.product_id}', qty={self.quantity})>"


class ReturnTimeline(Base):
    """Append-only audit trail of a return's status changes."""
    __tablename__ = "return_timeline"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    return_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("return_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    performed_by: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    return_request: Mapped["ReturnRequest"] = relationship("ReturnRequest", back_populates="timeline")

    def __repr__(self) -> str:
        return f"<ReturnTimeline(action='{self.action}', status='{self.status}')>"


class ReplacementOrder(Base):
    """Link between an approved return and the free order fulfilling it."""
    __tablename__ = "replacement_orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    original_order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id"),
        nullable=False,
        index=True
    )
    return_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("return_requests.id"),
        unique=True,
        nullable=False
    )
    new_order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id"),
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    return_request: Mapped["ReturnRequest"] = relationship("ReturnRequest", back_populates="replacement")


class ReturnQCChecklist(Base):
    """
    Inspection of returned goods, one per order.
    `schema_version` selects the pass/fail rule the checklist was graded with.
    """
    __tablename__ = "return_qc_checklists"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id"),
        unique=True,
        nullable=False
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    inspector_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    schema_version: Mapped[str] = mapped_column(String(30), nullable=False)

    is_brand_box_intact: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_product_intact: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_original_packaging: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_unused: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    all_accessories_present: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    has_physical_damage: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    imei_match: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    missing_accessories: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    images: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, comment="PASSED, FAILED")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<ReturnQCChecklist(order_id='{self.order_id}', status='{self.status}')>"
