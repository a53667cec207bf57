"""
Media reference normalization.

Content records store media as a single string in one of several shapes:

- ``uploads/<folder>/<file>``: the canonical storage key
- ``https://host/api/download?key=uploads%2F...``: a resolved endpoint URL saved by mistake
- ``https://f004.backblazeb2.com/file/<bucket>/uploads/...``: a persisted native (signed) URL
- ``https://youtube.com/...``: an externally hosted asset, used verbatim
- ``/images/logo.png``: a local static asset, used verbatim

``normalize_reference`` reduces any of them to a pass-through URL, a canonical
key, or nothing. Detectors run in a fixed order and the first match wins.
"""
import enum
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple
from urllib.parse import parse_qs, quote, unquote, urlsplit

UPLOADS_PREFIX = "uploads/"
DOWNLOAD_PATH = "/api/download"
DEFAULT_NATIVE_HOSTS: Tuple[str, ...] = ("backblazeb2.com",)


class ReferenceKind(str, enum.Enum):
    """What a stored media reference turned out to be."""
    PASSTHROUGH = "passthrough"
    CANONICAL = "canonical"
    ABSENT = "absent"


@dataclass(frozen=True)
class NormalizedReference:
    kind: ReferenceKind
    value: str = ""

    @property
    def is_canonical(self) -> bool:
        return self.kind is ReferenceKind.CANONICAL

    @property
    def is_passthrough(self) -> bool:
        return self.kind is ReferenceKind.PASSTHROUGH

    @property
    def is_absent(self) -> bool:
        return self.kind is ReferenceKind.ABSENT


ABSENT = NormalizedReference(ReferenceKind.ABSENT)


def _canonical(key: str) -> NormalizedReference:
    return NormalizedReference(ReferenceKind.CANONICAL, key)


def _passthrough(url: str) -> NormalizedReference:
    return NormalizedReference(ReferenceKind.PASSTHROUGH, url)


def is_absolute_url(reference: str) -> bool:
    return reference.lower().startswith(("http://", "https://"))


def is_local_path(reference: str) -> bool:
    """
    Same-origin path such as ``/images/logo.png``.

    ``//host/...`` and ``/\\host/...`` are rejected: browsers read both as
    protocol-relative URLs pointing at another host.
    """
    return reference.startswith("/") and not reference.startswith(("//", "/\\"))


def _host_matches(host: str, native_hosts: Iterable[str]) -> bool:
    host = host.lower()
    return any(host == h or host.endswith("." + h) for h in native_hosts)


def _from_download_endpoint(reference: str, native_hosts: Tuple[str, ...]) -> Optional[NormalizedReference]:
    """Repair a persisted ``/api/download?key=...`` URL."""
    if DOWNLOAD_PATH not in reference or "key=" not in reference:
        return None
    try:
        query = urlsplit(reference).query
        values = parse_qs(query, keep_blank_values=False).get("key")
    except ValueError:
        return _passthrough(reference)
    if not values or not values[0].strip():
        return _passthrough(reference)
    # parse_qs has already percent-decoded the value. It may itself be a
    # native or endpoint URL, so it is normalized again; each pass is shorter.
    return normalize_reference(values[0], native_hosts)


def _from_native_url(reference: str, native_hosts: Tuple[str, ...]) -> Optional[NormalizedReference]:
    """Repair a persisted object-store URL by keeping the path from ``uploads`` on."""
    if not is_absolute_url(reference):
        return None
    try:
        parts = urlsplit(reference)
        host = parts.hostname or ""
    except ValueError:
        return _passthrough(reference)
    if not host or not _host_matches(host, native_hosts):
        return None
    segments = [unquote(segment) for segment in parts.path.split("/")]
    if "uploads" not in segments:
        return _passthrough(reference)
    key = "/".join(segments[segments.index("uploads"):])
    return _canonical(key)


def _external_url(reference: str, native_hosts: Tuple[str, ...]) -> Optional[NormalizedReference]:
    if is_absolute_url(reference):
        return _passthrough(reference)
    return None


def _local_static_path(reference: str, native_hosts: Tuple[str, ...]) -> Optional[NormalizedReference]:
    if is_local_path(reference) and UPLOADS_PREFIX not in reference:
        return _passthrough(reference)
    return None


def _canonical_key(reference: str, native_hosts: Tuple[str, ...]) -> Optional[NormalizedReference]:
    if reference.startswith(UPLOADS_PREFIX):
        return _canonical(reference)
    return None


Detector = Callable[[str, Tuple[str, ...]], Optional[NormalizedReference]]

# Precedence matters: endpoint URLs and native URLs are absolute too.
DETECTORS: Tuple[Detector, ...] = (
    _from_download_endpoint,
    _from_native_url,
    _external_url,
    _local_static_path,
    _canonical_key,
)


def normalize_reference(
    reference: Optional[str],
    native_hosts: Optional[Iterable[str]] = None,
) -> NormalizedReference:
    """
    Reduce a stored media reference to a pass-through URL, a canonical key, or absence.

    Never raises. Normalizing a canonical key returns it unchanged.

    Args:
        reference: Value as stored on a content record (may be None)
        native_hosts: Hostnames of the object store whose URLs embed the key

    Returns:
        NormalizedReference tagged with its ReferenceKind
    """
    if reference is None:
        return ABSENT
    reference = str(reference).strip()
    if not reference:
        return ABSENT

    hosts = tuple(h.lower() for h in (native_hosts if native_hosts is not None else DEFAULT_NATIVE_HOSTS) if h)
    for detector in DETECTORS:
        result = detector(reference, hosts)
        if result is not None:
            return result
    return ABSENT


def canonical_key(reference: Optional[str], native_hosts: Optional[Iterable[str]] = None) -> Optional[str]:
    """Return the canonical key for a reference, or None if it is not a stored object."""
    normalized = normalize_reference(reference, native_hosts)
    return normalized.value if normalized.is_canonical else None


def embed_url(
    reference: Optional[str],
    endpoint: str = DOWNLOAD_PATH,
    native_hosts: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """
    URL a server-rendered page can put straight into ``src``.

    Pass-through references are returned as-is, stored objects go through the
    download endpoint (which redirects to a signed URL), absent references give None.
    """
    normalized = normalize_reference(reference, native_hosts)
    if normalized.is_passthrough:
        return normalized.value
    if normalized.is_canonical:
        return f"{endpoint}?key={quote(normalized.value, safe='')}"
    return None
