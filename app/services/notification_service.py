"""
Notification Service

Persists in-app notifications for customers and vendors. Push/SMS fan-out
reads from these rows and is handled outside this service.

Callers treat notifications as fire-and-forget: a failure here must never
abort the order or return operation that triggered it.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification, NotificationType, NotificationAudience


logger = logging.getLogger(__name__)


class NotificationService:
    """Service for creating user notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_notification(
        self,
        user_id: uuid.UUID,
        title: str,
        body: str,
        type: str = NotificationType.SYSTEM.value,
        audience: str = NotificationAudience.CUSTOMER.value,
    ) -> Notification:
        """Create and commit a notification for a user."""
        notification = Notification(
            user_id=user_id,
            title=title,
            body=body,
            type=type,
            audience=audience,
        )
        self.db.add(notification)
        await self.db.commit()

        logger.info(f"[NOTIFICATION] {audience} {user_id}: {title} - {body[:100]}")
        return notification

    async def notify_safely(
        self,
        user_id: Optional[uuid.UUID],
        title: str,
        body: str,
        type: str = NotificationType.SYSTEM.value,
        audience: str = NotificationAudience.CUSTOMER.value,
    ) -> Optional[Notification]:
        """Best-effort variant: logs and returns None instead of raising."""
        if user_id is None:
            return None
        try:
            return await self.create_notification(user_id, title, body, type, audience)
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Notification to {user_id} failed: {e}")
            return None
