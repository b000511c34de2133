"""
Shared pytest fixtures.

Tests run against an in-memory SQLite database through aiosqlite. Object
storage is replaced by FakeStorage so no Supabase project is needed.
"""

import os
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Optional

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("DEBUG", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.core.storage import StorageError
from app.database import Base, custom_json_dumps, get_db
from app import models  # noqa: F401
from app.models.order import Order, OrderStatus, PaymentMode
from app.models.product import Product
from app.models.user import User, UserRole
from app.models.vendor import Vendor


# ============================================================================
# STORAGE
# ============================================================================


class FakeStorage:
    """In-memory stand-in for StorageClient."""

    def __init__(self):
        self.uploads = {}
        self.fail = False

    def upload_file(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        if self.fail:
            raise StorageError("bucket unavailable")
        self.uploads[(bucket, path)] = (content, content_type)
        return path

    def get_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        if self.fail:
            raise StorageError("bucket unavailable")
        return f"https://storage.test/{bucket}/{path}?expires_in={expires_in}"


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def async_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        json_serializer=custom_json_dumps,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session


# ============================================================================
# TEST DATA
# ============================================================================


async def _create_user(db: AsyncSession, role: UserRole, mobile: str, name: str) -> User:
    user = User(name=name, mobile=mobile, role=role.value, is_active=True)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def customer(db_session) -> User:
    return await _create_user(db_session, UserRole.CUSTOMER, "9000000001", "Asha Customer")


@pytest_asyncio.fixture
async def admin(db_session) -> User:
    return await _create_user(db_session, UserRole.ADMIN, "9000000002", "Ravi Admin")


@pytest_asyncio.fixture
async def vendor_user(db_session) -> User:
    return await _create_user(db_session, UserRole.VENDOR, "9000000003", "Meena Vendor")


@pytest_asyncio.fixture
async def vendor(db_session, vendor_user) -> Vendor:
    vendor = Vendor(name="Meena Traders", store_name="Meena Mobiles", mobile=vendor_user.mobile)
    db_session.add(vendor)
    await db_session.commit()
    return vendor


@pytest_asyncio.fixture
async def other_vendor(db_session) -> Vendor:
    vendor = Vendor(name="Other Traders", mobile="9000000099")
    db_session.add(vendor)
    await db_session.commit()
    return vendor


@pytest_asyncio.fixture
async def product(db_session, vendor) -> Product:
    product = Product(
        vendor_id=vendor.id,
        name="Redmi Note 13",
        sku="RN13-BLK",
        price=Decimal("14999.00"),
        stock=10,
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest_asyncio.fixture
async def variant_product(db_session, vendor) -> Product:
    product = Product(
        vendor_id=vendor.id,
        name="Cotton Kurta",
        sku="KURTA-01",
        price=Decimal("799.00"),
        stock=8,
        variants=[
            {"id": "kurta-m", "size": "M", "stock": 5, "is_active": True},
            {"id": "kurta-l", "size": "L", "stock": 3, "is_active": True},
        ],
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest.fixture
def make_order(db_session, customer):
    """Factory for orders holding one snapshot line of a product."""

    async def _make_order(
        product: Product,
        status: OrderStatus = OrderStatus.CREATED,
        payment_mode: PaymentMode = PaymentMode.ONLINE,
        quantity: int = 1,
        variant_id: Optional[str] = None,
        user: Optional[User] = None,
        payment_provider: Optional[str] = None,
    ) -> Order:
        order = Order(
            order_number=f"ORD-{uuid.uuid4().hex[:10].upper()}",
            user_id=(user or customer).id,
            status=status.value,
            payment_mode=payment_mode.value,
            payment_provider=payment_provider,
            total_amount=product.price * quantity,
            items_snapshot=[{
                "product_id": str(product.id),
                "vendor_id": str(product.vendor_id),
                "variant_id": variant_id,
                "quantity": quantity,
                "price": str(product.price),
                "name": product.name,
            }],
            address_id=uuid.uuid4(),
        )
        db_session.add(order)
        await db_session.commit()
        return order

    return _make_order


# ============================================================================
# HTTP CLIENT
# ============================================================================


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token(subject=user.id, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def client(db_session, storage) -> AsyncGenerator[AsyncClient, None]:
    """API client sharing the test session and the fake storage."""
    from app.api.deps import get_storage
    from app.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
