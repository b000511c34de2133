from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Orders & fulfilment
    orders,
    admin_orders,
    vendor_orders,
    # Returns & replacement
    returns,
    admin_returns,
    vendor_returns,
    # Refunds (replacement-only policy)
    refunds,
    admin_refunds,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Orders ====================
api_router.include_router(orders.router)
api_router.include_router(admin_orders.router)
api_router.include_router(vendor_orders.router)

# ==================== Returns ====================
api_router.include_router(returns.router)
api_router.include_router(admin_returns.router)
api_router.include_router(vendor_returns.router)

# ==================== Refunds ====================
api_router.include_router(refunds.router)
api_router.include_router(admin_refunds.router)
