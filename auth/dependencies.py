"""
FastAPI dependencies for database sessions, storage and admin access.
"""
from typing import Optional

from fastapi import HTTPException, Security, status

from auth.security import api_key_header, verify_api_key
from core.logger import logger
import config


def get_db_session():
    """Get database session."""
    if not config.db:
        raise HTTPException(status_code=503, detail="Database not initialized")
    with config.db.get_session() as session:
        yield session


def get_signing_service():
    """Process-wide signing service; created from config on first use."""
    if config.signing_service is None:
        from storage.signing import SigningService
        config.signing_service = SigningService(config.storage_config())
    return config.signing_service


async def require_admin_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    """
    Require the shared admin key in the X-API-Key header.

    Raises:
        HTTPException: 401 if the key is missing or wrong
    """
    if not verify_api_key(api_key, config.UPLOAD_API_KEY):
        if not config.UPLOAD_API_KEY:
            logger.warning("UPLOAD_API_KEY is not set; admin endpoints reject every request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "API-Key"},
        )


async def require_upload_access(api_key: Optional[str] = Security(api_key_header)) -> None:
    """Uploads are open only when ALLOW_PUBLIC_UPLOADS=true; otherwise the admin key is required."""
    if config.ALLOW_PUBLIC_UPLOADS:
        return
    await require_admin_key(api_key)
