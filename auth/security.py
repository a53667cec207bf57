"""
Security utilities for the admin upload key.
"""
import hashlib
import secrets
from typing import Optional

from fastapi.security import APIKeyHeader

# Security schemes
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def hash_api_key(key: str) -> str:
    """
    Hash an API key for comparison.

    Args:
        key: API key string

    Returns:
        Hashed key
    """
    return hashlib.sha256(key.encode()).hexdigest()


def verify_api_key(provided_key: Optional[str], expected_key: Optional[str]) -> bool:
    """
    Compare a provided API key with the configured one in constant time.

    Returns False when either side is empty.
    """
    if not provided_key or not expected_key:
        return False
    return secrets.compare_digest(hash_api_key(provided_key), hash_api_key(expected_key))
