"""Supabase Storage client for packing videos and other uploads."""
import logging
import uuid
from typing import Optional

from app.config import settings


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store rejects an operation."""
    pass


class StorageClient:
    """Client for Supabase Storage operations."""

    _client = None

    @classmethod
    def get_client(cls):
        """Get or create Supabase client."""
        if cls._client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
                raise StorageError(
                    "Supabase credentials not configured. "
                    "Set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables."
                )
            from supabase import create_client

            cls._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_SERVICE_KEY
            )
        return cls._client

    @classmethod
    def upload_file(
        cls,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str
    ) -> str:
        """
        Upload file to Supabase Storage.

        Args:
            bucket: Bucket name (e.g., "videos")
            path: Storage path inside the bucket
            content: File content as bytes
            content_type: MIME type (e.g., "video/mp4")

        Returns:
            The storage path that was written
        """
        try:
            cls.get_client().storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Upload to {bucket}/{path} failed: {e}")
            raise StorageError(str(e)) from e
        return path

    @classmethod
    def get_signed_url(cls, bucket: str, path: str, expires_in: int) -> str:
        """Create a time-limited URL for a private object."""
        try:
            result = cls.get_client().storage.from_(bucket).create_signed_url(path, expires_in)
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Signing {bucket}/{path} failed: {e}")
            raise StorageError(str(e)) from e

        signed_url = result.get("signedURL") or result.get("signedUrl")
        if not signed_url:
            raise StorageError(f"No signed URL returned for {bucket}/{path}")
        return signed_url

    @classmethod
    def generate_unique_filename(cls, original_filename: Optional[str], prefix: str = "") -> str:
        """
        Generate a unique filename to prevent collisions.

        Keeps the original extension; falls back to "mp4" when there is none.
        """
        ext = "mp4"
        if original_filename and "." in original_filename:
            ext = original_filename.rsplit(".", 1)[-1].lower()
        return f"{prefix}{uuid.uuid4()}.{ext}"
