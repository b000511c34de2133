# Models module
from app.models.user import User, UserRole
from app.models.vendor import Vendor
from app.models.product import Product
from app.models.order import Order, OrderStatus, OrderStatusHistory, PaymentMode
from app.models.return_request import (
    ReturnRequest,
    ReturnItem,
    ReturnTimeline,
    ReplacementOrder,
    ReturnQCChecklist,
    ReturnStatus,
    ReturnReason,
)
from app.models.packing_proof import OrderPackingProof
from app.models.refund import Refund, RefundStatus, RefundMethod
from app.models.audit_log import AuditLog
from app.models.notification import Notification

__all__ = [
    "User",
    "UserRole",
    "Vendor",
    "Product",
    "Order",
    "OrderStatus",
    "OrderStatusHistory",
    "PaymentMode",
    # Returns
    "ReturnRequest",
    "ReturnItem",
    "ReturnTimeline",
    "ReplacementOrder",
    "ReturnQCChecklist",
    "ReturnStatus",
    "ReturnReason",
    "OrderPackingProof",
    # Refunds (read-mostly)
    "Refund",
    "RefundStatus",
    "RefundMethod",
    "AuditLog",
    "Notification",
]
