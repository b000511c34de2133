from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.config import settings
from app.api.v1.router import api_router
from app.database import init_db, async_session_factory


logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    In DEBUG mode tables are created on startup; deployed databases are
    managed by Alembic migrations.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    if settings.DEBUG:
        await init_db()

    yield

    logger.info("Shutting down...")


# OpenAPI Tags with detailed descriptions
OPENAPI_TAGS = [
    {"name": "Orders", "description": "Customer cancellation and packing video access"},
    {"name": "Admin Orders", "description": "Status changes, audited overrides and shipping"},
    {"name": "Vendor Orders", "description": "Packing video upload and PACKED/SHIPPED updates"},
    {"name": "Returns", "description": "Return requests, status pipeline and QC checklist"},
    {"name": "Admin Returns", "description": "Approval, rejection, QC grading and replacement recovery"},
    {"name": "Vendor Returns", "description": "Vendor review of returns against their products"},
    {"name": "Refunds", "description": "Refund history; direct refund requests are blocked"},
    {"name": "Admin Refunds", "description": "Refund reads and the audited refund override"},
]

API_DESCRIPTION = """
## RISBOW Backend API

Order lifecycle, returns and replacement for the RISBOW marketplace.

### Policies

- **Forward-only orders**: order status follows the payment mode's flow; admins may override with an audit entry
- **Packing proof**: an order cannot be PACKED or SHIPPED without a packing video
- **Replacement only**: approved returns produce a free replacement order; monetary refunds are blocked

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Illegal transition or invalid input |
| 401 | Unauthorized - Invalid/expired token |
| 403 | Forbidden - Role or ownership violation |
| 404 | Not Found - Resource doesn't exist |
| 409 | Conflict - Concurrent update or refund policy block |
| 500 | Internal Server Error |
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Typed HTTP errors are rendered by FastAPI; anything reaching here is a bug."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) if settings.DEBUG else "Internal server error",
            "type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus a round trip to the database."""
    checked_at = datetime.now(timezone.utc).isoformat()
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check could not reach the database: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable", "checked_at": checked_at},
        )

    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "connected",
        "checked_at": checked_at,
    }
