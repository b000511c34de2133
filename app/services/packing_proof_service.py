"""
Packing Proof Service

Vendors record a packing video before dispatch. The proof's existence is the
gate for moving an order to PACKED or SHIPPED, for every actor.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.storage import StorageClient, StorageError
from app.models.order import Order, OrderStatus
from app.models.packing_proof import OrderPackingProof
from app.services.audit_service import AuditService


logger = logging.getLogger(__name__)


# Order statuses that cannot be reached without a packing video
PROOF_GATED_STATUSES = frozenset({OrderStatus.PACKED.value, OrderStatus.SHIPPED.value})


class ObjectStorage(Protocol):
    def upload_file(self, bucket: str, path: str, content: bytes, content_type: str) -> str: ...

    def get_signed_url(self, bucket: str, path: str, expires_in: int) -> str: ...


@dataclass
class VideoUpload:
    """An uploaded file as received from the HTTP layer."""
    filename: Optional[str]
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def check_video_size(size: Optional[int]) -> None:
    """Reject a video over PACKING_VIDEO_MAX_BYTES; an unknown size passes."""
    if size is not None and size > settings.PACKING_VIDEO_MAX_BYTES:
        limit_mb = settings.PACKING_VIDEO_MAX_BYTES // (1024 * 1024)
        raise BadRequestError(f"Video exceeds {limit_mb}MB limit")


async def read_video_upload(file) -> VideoUpload:
    """
    Buffer a multipart upload into a VideoUpload.

    The size declared by the upload is checked before the body is read.
    """
    check_video_size(file.size)
    return VideoUpload(
        filename=file.filename,
        content_type=file.content_type,
        content=await file.read(),
    )


class PackingProofService:
    """Upload, lookup and enforcement of packing video proofs."""

    def __init__(self, db: AsyncSession, storage: ObjectStorage = StorageClient):
        self.db = db
        self.storage = storage
        self.audit = AuditService(db)

    async def get_proof(self, order_id: uuid.UUID) -> Optional[OrderPackingProof]:
        result = await self.db.execute(
            select(OrderPackingProof).where(OrderPackingProof.order_id == order_id)
        )
        return result.scalar_one_or_none()

    async def has_proof(self, order_id: uuid.UUID) -> bool:
        return await self.get_proof(order_id) is not None

    async def ensure_proof(self, order_id: uuid.UUID) -> None:
        """Raise unless a packing video is on record for the order."""
        if not await self.has_proof(order_id):
            raise BadRequestError("Packing video proof is mandatory before order can be shipped")

    async def enforce_gate(self, order_id: uuid.UUID, new_status: str) -> None:
        """Apply the proof requirement when the target status is gated."""
        if new_status in PROOF_GATED_STATUSES:
            await self.ensure_proof(order_id)

    def _validate_file(self, file: Optional[VideoUpload]) -> None:
        if file is None or not file.content:
            raise BadRequestError("Video file is required")
        if not (file.content_type or "").startswith("video/"):
            raise BadRequestError("Only video uploads are allowed")
        check_video_size(file.size)

    async def upload_packing_video(
        self,
        vendor_id: Optional[uuid.UUID],
        user_id: uuid.UUID,
        order_id: uuid.UUID,
        file: Optional[VideoUpload],
    ) -> dict:
        """
        Store a packing video and record it as the order's proof.

        Args:
            vendor_id: Vendor who packed the order (None for admin uploads)
            user_id: Account performing the upload
            order_id: Order being packed
            file: The uploaded video

        Returns:
            {"success": True, "proof_id": ...}
        """
        self._validate_file(file)

        order = (await self.db.execute(select(Order).where(Order.id == order_id))).scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")

        owner = vendor_id or "admin"
        filename = StorageClient.generate_unique_filename(file.filename, prefix=f"{int(time.time() * 1000)}-")
        path = f"vendor/{owner}/order/{order_id}/{filename}"

        try:
            self.storage.upload_file(settings.PACKING_VIDEO_BUCKET, path, file.content, file.content_type)
        except StorageError as e:
            raise BadRequestError(f"Failed to upload packing video: {e}")

        proof = await self.get_proof(order_id)
        if proof:
            # Correction upload replaces the previous video reference
            proof.vendor_id = vendor_id
            proof.uploaded_by_user_id = user_id
            proof.video_path = path
            proof.video_mime = file.content_type
            proof.video_size_bytes = file.size
        else:
            proof = OrderPackingProof(
                order_id=order_id,
                vendor_id=vendor_id,
                uploaded_by_user_id=user_id,
                video_path=path,
                video_mime=file.content_type,
                video_size_bytes=file.size,
            )
            self.db.add(proof)
        await self.db.commit()

        try:
            await self.audit.log_admin_action(
                user_id,
                "PACKING_VIDEO_UPLOADED",
                "Order",
                order_id,
                {"vendor_id": str(vendor_id) if vendor_id else None, "path": path, "size": file.size},
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Audit of packing video for order {order_id} failed: {e}")

        logger.info(f"Packing video stored for order {order.order_number} at {path}")
        return {"success": True, "proof_id": proof.id}

    async def get_signed_video_url_for_customer(self, user_id: uuid.UUID, order_id: uuid.UUID) -> dict:
        """Short-lived link so the customer can view how their parcel was packed."""
        order = (
            await self.db.execute(select(Order).where(Order.id == order_id, Order.user_id == user_id))
        ).scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")

        proof = await self.get_proof(order_id)
        if not proof:
            raise NotFoundError("Packing video not available for this order")

        ttl = settings.PACKING_VIDEO_URL_TTL_SECONDS
        try:
            signed_url = self.storage.get_signed_url(settings.PACKING_VIDEO_BUCKET, proof.video_path, ttl)
        except StorageError as e:
            raise BadRequestError(f"Could not sign packing video URL: {e}")

        return {"signed_url": signed_url, "expires_in_seconds": ttl}
