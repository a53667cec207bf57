"""
Storage key generation for uploaded media.
All uploads live under a single bucket with keys like:
    uploads/images/1767922036492-xei7zw-cover.png
    uploads/books/covers/1767922036492-a1b2c3-book.pdf
"""
import secrets
import string
import time
from typing import Optional

UPLOADS_ROOT = "uploads"
DEFAULT_FOLDER = "general"

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def folder_for_content_type(content_type: str) -> str:
    """Default folder when the client gives no hint."""
    if content_type.startswith("image/"):
        return "images"
    if content_type.startswith("audio/"):
        return "audio"
    if content_type.startswith("video/"):
        return "videos"
    if content_type == "application/pdf":
        return "documents"
    return DEFAULT_FOLDER


def random_suffix(length: int = 6) -> str:
    """Short base36 token to keep same-millisecond uploads apart."""
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


def upload_file_name(safe_name: str, timestamp_ms: Optional[int] = None) -> str:
    """<timestamp>-<random>-<sanitized-name>"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}-{random_suffix()}-{safe_name}"


def upload_key(folder: str, file_name: str) -> str:
    """uploads/<folder>/<file_name>"""
    return f"{UPLOADS_ROOT}/{folder.strip('/')}/{file_name}"
