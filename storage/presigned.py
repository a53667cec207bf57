"""
Presigned URL helper for API responses.
Converts stored media references to URLs browsers can load directly.
"""
from typing import Optional

from core.logger import logger
from storage.media_reference import normalize_reference
from storage.signing import SigningError, StorageNotConfiguredError


def get_presigned_url(reference: Optional[str], signing_service=None) -> Optional[str]:
    """
    Turn a stored media reference into a browser-usable URL for use in API JSON.

    Pass-through references come back unchanged, stored objects are signed.
    Returns None if the reference is empty, storage is not configured, or signing fails.
    """
    if signing_service is None:
        import config
        signing_service = config.signing_service

    normalized = normalize_reference(
        reference,
        signing_service.config.all_native_hosts() if signing_service else None,
    )
    if normalized.is_passthrough:
        return normalized.value
    if not normalized.is_canonical or signing_service is None:
        return None
    try:
        return signing_service.sign(normalized.value).url
    except StorageNotConfiguredError:
        return None
    except SigningError as e:
        logger.warning(f"Could not sign {normalized.value}: {e} ({e.details})")
        return None
