from typing import Optional, Dict, Any
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog


logger = logging.getLogger(__name__)


class AuditService:
    """
    Audit service for privileged and policy-relevant actions.

    Entries are append-only: this service only ever inserts.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[Any] = None,
        actor_id: Optional[uuid.UUID] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """
        Create an audit log entry.

        Args:
            action: The action performed (ORDER_STATUS_CHANGED, FORCE_REFUND_APPROVE, etc.)
            entity_type: Type of entity (Order, ReturnRequest, Refund, ...)
            entity_id: ID of the affected entity
            actor_id: ID of the user performing the action
            details: Free-form context (previous/next status, reason, ...)
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            The created AuditLog entry
        """
        audit_log = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            actor_id=actor_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(audit_log)
        await self.db.flush()
        return audit_log

    async def log_admin_action(
        self,
        actor_id: Optional[uuid.UUID],
        action: str,
        entity_type: str,
        entity_id: Optional[Any],
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Log an action taken by a staff user. Skipped when the actor is unknown."""
        if actor_id is None:
            logger.debug(f"Skipping audit {action} on {entity_type} {entity_id}: no actor")
            return None
        return await self.log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            details=details,
        )
