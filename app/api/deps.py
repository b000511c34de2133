from typing import Annotated
import uuid
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.security import verify_access_token
from app.core.storage import StorageClient
from app.models.user import User, UserRole
from app.models.vendor import Vendor
from app.services.packing_proof_service import ObjectStorage


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency to get the current authenticated user.
    Validates the JWT token and returns the user object.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = verify_access_token(credentials.credentials)
    if user_id is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise credentials_exception

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid user_id in token: {user_id}")
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning(f"User {user_id} not found")
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )

    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory to require one of the given roles.

    Usage:
        @router.patch("/{id}/status")
        async def update(admin: User = Depends(require_roles(UserRole.ADMIN, UserRole.SUPER_ADMIN))):
            ...
    """
    allowed = {role.value for role in roles}

    async def role_dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {user.role} not permitted. Required: {', '.join(sorted(allowed))}"
            )
        return user

    return role_dependency


require_admin = require_roles(UserRole.ADMIN, UserRole.SUPER_ADMIN)
require_vendor = require_roles(UserRole.VENDOR)


async def get_current_vendor(
    user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Resolve the vendor profile linked to the caller's mobile number."""
    result = await db.execute(select(Vendor).where(Vendor.mobile == user.mobile))
    vendor = result.scalars().first()
    if vendor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vendor profile not found for this account"
        )
    return vendor


def get_storage() -> ObjectStorage:
    """Object storage used for packing videos."""
    return StorageClient


# Type aliases for cleaner endpoint signatures
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
VendorUser = Annotated[User, Depends(require_vendor)]
CurrentVendor = Annotated[Vendor, Depends(get_current_vendor)]
DB = Annotated[AsyncSession, Depends(get_db)]
Storage = Annotated[ObjectStorage, Depends(get_storage)]
