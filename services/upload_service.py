"""
Media upload service: validation, key layout and storage write.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from botocore.exceptions import ClientError, BotoCoreError

from core.logger import logger
from core.validators import (
    sanitize_filename,
    sanitize_folder,
    validate_content_type,
    validate_file_size,
)
from storage.s3_paths import folder_for_content_type, upload_file_name, upload_key
from storage.signing import SigningService


class UploadRejectedError(Exception):
    """The upload failed validation; maps to a 400 response."""


class UploadFailedError(Exception):
    """The object store refused the write; maps to a 500 response."""


@dataclass
class StoredUpload:
    key: str
    url: str
    file_name: str
    original_name: str
    size: int
    content_type: str

    def to_response(self) -> dict:
        return {
            "success": True,
            "url": self.url,
            "key": self.key,
            "fileName": self.file_name,
            "originalName": self.original_name,
            "size": self.size,
            "type": self.content_type,
        }


class UploadService:
    """Service for storing uploaded media under canonical keys."""

    @staticmethod
    def build_key(
        original_name: str,
        content_type: str,
        folder: Optional[str] = None,
        timestamp_ms: Optional[int] = None,
    ) -> str:
        """
        Build ``uploads/<folder>/<timestamp>-<random>-<sanitized-name>``.

        Raises:
            UploadRejectedError: If the filename cannot be sanitized
        """
        try:
            safe_name = sanitize_filename(original_name)
        except ValueError as e:
            raise UploadRejectedError(f"Invalid filename: {e}") from e
        target_folder = sanitize_folder(folder) or folder_for_content_type(content_type)
        return upload_key(target_folder, upload_file_name(safe_name, timestamp_ms))

    @staticmethod
    def validate(
        content_type: Optional[str],
        size: int,
        allowed_types: Iterable[str],
        max_size_bytes: int,
    ) -> str:
        """
        Check MIME type and size; return the normalized content type.

        Raises:
            UploadRejectedError: If either check fails
        """
        is_valid_type, type_error = validate_content_type(content_type, allowed_types)
        if not is_valid_type:
            raise UploadRejectedError(type_error)
        is_valid_size, size_error = validate_file_size(size, max_size_bytes)
        if not is_valid_size:
            raise UploadRejectedError(size_error)
        return content_type.split(";", 1)[0].strip().lower()

    @staticmethod
    def store(
        signing_service: SigningService,
        content: bytes,
        original_name: str,
        content_type: Optional[str],
        folder: Optional[str],
        allowed_types: Iterable[str],
        max_size_bytes: int,
        cache_control: Optional[str] = None,
    ) -> StoredUpload:
        """
        Validate and write an upload to the object store.

        Raises:
            UploadRejectedError: validation failed
            StorageNotConfiguredError: storage credentials are absent
            UploadFailedError: the store rejected the write
        """
        normalized_type = UploadService.validate(content_type, len(content), allowed_types, max_size_bytes)
        key = UploadService.build_key(original_name, normalized_type, folder)

        client = signing_service.get_client()
        try:
            client.put_object(key, content, normalized_type, cache_control=cache_control)
        except (ClientError, BotoCoreError) as e:
            raise UploadFailedError(str(e)) from e

        logger.info(f"Stored upload {original_name!r} as {key} ({len(content)} bytes)")
        return StoredUpload(
            key=key,
            url=client.get_public_url(key),
            file_name=key.rsplit("/", 1)[-1],
            original_name=original_name,
            size=len(content),
            content_type=normalized_type,
        )
