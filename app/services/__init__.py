# Services module
from app.services.audit_service import AuditService
from app.services.notification_service import NotificationService
from app.services.inventory_service import InventoryService
from app.services.order_state_validator import OrderStateValidatorService
from app.services.order_service import OrderService
from app.services.packing_proof_service import PackingProofService
from app.services.returns_service import ReturnsService
from app.services.refunds_service import RefundsService
from app.services.refund_override_service import RefundOverrideService

__all__ = [
    "AuditService",
    "NotificationService",
    "InventoryService",
    "OrderStateValidatorService",
    "OrderService",
    "PackingProofService",
    # Returns / refunds
    "ReturnsService",
    "RefundsService",
    "RefundOverrideService",
]
