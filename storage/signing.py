"""
Signing service: exchanges a canonical storage key for a time-limited GET URL.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from botocore.exceptions import ClientError, BotoCoreError

from core.logger import logger
from storage.s3_client import S3Client, StorageConfig


class StorageNotConfiguredError(Exception):
    """Object-store credentials are missing; callers should degrade to a placeholder."""


class SigningError(Exception):
    """The object store (or the SDK) refused to produce a signed URL."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details


@dataclass(frozen=True)
class SignedUrl:
    """Ephemeral credential-bearing URL. Never persisted."""
    url: str
    key: str
    expires_in: int
    expires_at: datetime


class SigningService:
    """
    Issues read-only signed URLs for single objects.

    The underlying S3 client is created on first use and shared afterwards.
    One attempt per call; failures are reported, not retried.
    """

    def __init__(self, storage_config: StorageConfig, client: Optional[S3Client] = None):
        self.config = storage_config
        self._client = client
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @property
    def ttl(self) -> int:
        return self.config.signed_url_ttl

    def get_client(self) -> S3Client:
        """Return the shared S3 client, creating it on first use."""
        if not self.is_configured:
            raise StorageNotConfiguredError(
                f"Object storage not configured (missing: {', '.join(self.config.missing_settings)})"
            )
        if self._client is None:
            with self._lock:
                if self._client is None:
                    try:
                        self._client = S3Client(self.config)
                    except (BotoCoreError, ValueError) as e:
                        logger.error(f"Failed to initialize S3 client: {e}")
                        raise SigningError("Failed to initialize storage client", details=str(e)) from e
        return self._client

    def sign(self, key: str) -> SignedUrl:
        """
        Sign a GET request for ``key``.

        Raises:
            StorageNotConfiguredError: credentials are absent
            SigningError: signing failed with credentials present
        """
        client = self.get_client()
        if not key or not key.strip():
            raise SigningError("Cannot sign an empty key")

        try:
            url = client.get_presigned_url(key, expiration=self.ttl)
        except (ClientError, BotoCoreError) as e:
            raise SigningError("Failed to generate signed URL", details=str(e)) from e

        return SignedUrl(
            url=url,
            key=key,
            expires_in=self.ttl,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.ttl),
        )
