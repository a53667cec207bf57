"""
Input validation utilities for media uploads.
"""
import re
from pathlib import PurePosixPath
from typing import Iterable, Optional, Tuple

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_UNSAFE_FOLDER_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_filename(filename: str) -> str:
    """
    Sanitize an uploaded filename for use inside a storage key.

    Directory components are dropped and every character outside
    ``[a-zA-Z0-9.-]`` becomes an underscore.

    Args:
        filename: Original filename as sent by the browser

    Returns:
        Sanitized filename safe for use

    Raises:
        ValueError: If the name is empty before or after sanitization
    """
    if not filename or not filename.strip():
        raise ValueError("Filename cannot be empty")

    # Browsers on Windows may send full paths
    filename = PurePosixPath(filename.replace("\\", "/")).name

    sanitized = _UNSAFE_NAME_CHARS.sub("_", filename)

    if len(sanitized) > 200:
        sanitized = sanitized[-200:]

    if not sanitized.strip("._"):
        raise ValueError("Filename became empty after sanitization")

    return sanitized


def sanitize_folder(folder: Optional[str]) -> Optional[str]:
    """
    Sanitize a client-supplied folder hint such as ``books/covers``.

    Each path segment is reduced to ``[a-zA-Z0-9_-]``; empty, ``.`` and ``..``
    segments are dropped. Returns None when nothing usable remains.
    """
    if not folder:
        return None
    segments = []
    for part in folder.replace("\\", "/").split("/"):
        part = part.strip()
        if part in ("", ".", ".."):
            continue
        part = _UNSAFE_FOLDER_CHARS.sub("_", part)
        if part.strip("_"):
            segments.append(part)
    if segments and segments[0] == "uploads":
        segments = segments[1:]
    return "/".join(segments) or None


def validate_content_type(content_type: Optional[str], allowed_types: Iterable[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate an upload's MIME type against an allow-list.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not content_type:
        return False, "File type is missing"
    base_type = content_type.split(";", 1)[0].strip().lower()
    if base_type not in set(allowed_types):
        return False, f"File type not allowed: {base_type}"
    return True, None


def validate_file_size(file_size: int, max_size_bytes: int) -> Tuple[bool, Optional[str]]:
    """
    Validate file size.

    Args:
        file_size: File size in bytes
        max_size_bytes: Maximum allowed size in bytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    if file_size <= 0:
        return False, "File is empty"

    if file_size > max_size_bytes:
        max_size_mb = max_size_bytes / (1024 * 1024)
        actual_size_mb = file_size / (1024 * 1024)
        return False, f"File too large: {actual_size_mb:.2f}MB (max: {max_size_mb:.0f}MB)"

    return True, None
