"""
S3-compatible client for the media bucket (Backblaze B2).
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import quote, urlsplit

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, BotoCoreError

from core.logger import logger


@dataclass(frozen=True)
class StorageConfig:
    """Object-store settings. Read-only after startup."""
    endpoint_url: str = ""
    region_name: str = "us-east-1"
    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    public_url_base: str = ""
    signed_url_ttl: int = 3600
    native_hosts: Tuple[str, ...] = field(default_factory=lambda: ("backblazeb2.com",))

    @property
    def is_configured(self) -> bool:
        return all((self.endpoint_url, self.access_key_id, self.secret_access_key, self.bucket))

    @property
    def missing_settings(self) -> Tuple[str, ...]:
        names = {
            "endpoint_url": self.endpoint_url,
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
            "bucket": self.bucket,
        }
        return tuple(name for name, value in names.items() if not value)

    def all_native_hosts(self) -> Tuple[str, ...]:
        """Configured native hosts plus the host of the S3 endpoint itself."""
        hosts = [h.lower() for h in self.native_hosts if h]
        if self.endpoint_url:
            endpoint_host = (urlsplit(self.endpoint_url).hostname or "").lower()
            if endpoint_host and endpoint_host not in hosts:
                hosts.append(endpoint_host)
        return tuple(hosts)


def encode_key_path(key: str) -> str:
    """Percent-encode each segment of a key, preserving '/'."""
    return "/".join(quote(segment, safe="") for segment in key.split("/"))


class S3Client:
    """S3 client for storing and signing media objects in a single bucket."""

    def __init__(self, storage_config: StorageConfig):
        """
        Initialize S3 client.

        Args:
            storage_config: Endpoint, credentials and bucket for the object store
        """
        self.config = storage_config
        self.bucket_name = storage_config.bucket

        client_kwargs = {
            "region_name": storage_config.region_name,
            # Backblaze S3 endpoints work more reliably with path-style
            "config": Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        }
        if storage_config.access_key_id:
            client_kwargs["aws_access_key_id"] = storage_config.access_key_id
        if storage_config.secret_access_key:
            client_kwargs["aws_secret_access_key"] = storage_config.secret_access_key
        if storage_config.endpoint_url:
            client_kwargs["endpoint_url"] = storage_config.endpoint_url

        self.s3_client = boto3.client("s3", **client_kwargs)
        logger.info(f"S3 client initialized (bucket: {self.bucket_name})")

    def put_object(
        self,
        s3_key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> str:
        """
        Write bytes to the bucket under ``s3_key``.

        Returns:
            The key that was written
        """
        extra_args = {}
        if cache_control:
            extra_args["CacheControl"] = cache_control
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=s3_key,
                Body=body,
                ContentType=content_type,
                **extra_args
            )
            logger.info(f"Uploaded object to bucket: {self.bucket_name}/{s3_key} ({len(body)} bytes)")
            return s3_key
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload object {s3_key}: {e}")
            raise

    def get_presigned_url(self, s3_key: str, expiration: int = 3600) -> str:
        """
        Generate a presigned GET URL for temporary read access.

        Args:
            s3_key: Object key
            expiration: URL expiration time in seconds (default 1 hour)

        Returns:
            Presigned URL
        """
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": s3_key},
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate presigned URL for {s3_key}: {e}")
            raise

    def get_public_url(self, s3_key: str) -> str:
        """
        Build a public URL for a key.

        Uses the public "friendly URL" base when configured, otherwise the
        path-style ``<endpoint>/<bucket>/<key>`` form.
        """
        encoded = encode_key_path(s3_key)
        base = self.config.public_url_base.rstrip("/")
        if base:
            return f"{base}/{encoded}"
        endpoint = self.config.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket_name}/{encoded}"

    def check_bucket(self) -> None:
        """Raise if the bucket is unreachable with the configured credentials."""
        self.s3_client.head_bucket(Bucket=self.bucket_name)
