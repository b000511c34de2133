import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import JSONType, UUIDType


class OrderStatus(str, Enum):
    """Order status enumeration."""
    # Initial states
    CREATED = "CREATED"                    # Checkout completed
    PENDING_PAYMENT = "PENDING_PAYMENT"    # Awaiting online payment
    CONFIRMED = "CONFIRMED"                # COD order accepted
    PAID = "PAID"                          # Online payment captured

    # Fulfilment
    PACKED = "PACKED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"

    # Exit states
    CANCELLED = "CANCELLED"
    RETURN_REQUESTED = "RETURN_REQUESTED"
    RETURN_RECEIVED = "RETURN_RECEIVED"    # Returned goods passed QC
    REPLACED = "REPLACED"


class PaymentMode(str, Enum):
    """Payment mode decides which fulfilment flow applies."""
    ONLINE = "ONLINE"
    COD = "COD"


class Order(Base):
    """
    Customer order.

    `items_snapshot` is captured at checkout as a list of
    {"product_id", "vendor_id", "variant_id", "quantity", "price", "name"}
    and is never rewritten afterwards.
    """
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    order_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    status: Mapped[str] = mapped_column(
        String(50),
        default=OrderStatus.CREATED.value,
        nullable=False,
        index=True
    )
    payment_mode: Mapped[str] = mapped_column(
        String(20),
        default=PaymentMode.ONLINE.value,
        nullable=False,
        comment="ONLINE, COD"
    )
    payment_provider: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="RAZORPAY, COD, CASH, ..."
    )

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    items_snapshot: Mapped[List[dict]] = mapped_column(JSONType, default=list, nullable=False)

    address_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    room_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)

    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_replacement: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

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

    status_history: Mapped[List["OrderStatusHistory"]] = relationship(
        "OrderStatusHistory",
        back_populates="order",
        order_by="OrderStatusHistory.created_at"
    )

    @property
    def vendor_ids(self) -> set[str]:
        return {str(item.get("vendor_id")) for item in self.items_snapshot or [] if item.get("vendor_id")}

    def __repr__(self) -> str:
        return f"<Order(order_number='{self.order_number}', status='{self.status}')>"


class OrderStatusHistory(Base):
    """Append-only record of every order status change."""
    __tablename__ = "order_status_history"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    from_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    actor_role: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="status_history")

    def __repr__(self) -> str:
        return f"<OrderStatusHistory({self.from_status} -> {self.to_status})>"
