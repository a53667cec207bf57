"""
Client-side resolution of stored media references.

``SignedUrlResolver`` holds the render state for one media slot (a book cover,
a sermon's audio, ...): the URL to render, whether a lookup is in flight, and
the last error. References that are already absolute URLs are used as-is;
everything else is exchanged for a signed URL through ``/api/download``.

When the reference changes while a lookup is still running, only the result
for the newest reference is kept.
"""
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from core.logger import logger
from storage.media_reference import is_absolute_url

DOWNLOAD_ENDPOINT = "/api/download"


@dataclass(frozen=True)
class ResolutionState:
    url: Optional[str] = None
    loading: bool = False
    error: Optional[str] = None


IDLE = ResolutionState()


class SignedUrlResolver:
    """
    Resolves media references to render-ready URLs.

    Args:
        base_url: Site origin hosting the download endpoint, e.g. ``https://example.org``
        client: Optional shared ``httpx.AsyncClient``; one is created (and owned) otherwise
        endpoint: Path of the download endpoint
        on_change: Called with every new state
        timeout: Request timeout in seconds for an owned client
    """

    def __init__(
        self,
        base_url: str = "",
        client: Optional[httpx.AsyncClient] = None,
        endpoint: str = DOWNLOAD_ENDPOINT,
        on_change: Optional[Callable[[ResolutionState], None]] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._endpoint = endpoint
        self._on_change = on_change
        self._state = IDLE
        self._reference: Optional[str] = None
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def reference(self) -> Optional[str]:
        return self._reference

    def _set_state(self, state: ResolutionState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    async def resolve(self, reference: Optional[str]) -> ResolutionState:
        """
        Point the resolver at ``reference`` and wait for it to settle.

        Returns the current state once this call's lookup finishes. If a newer
        ``resolve`` call was made in the meantime, this call's result is dropped
        and the state returned is whatever the newer call has produced so far.
        """
        if self._closed:
            raise RuntimeError("SignedUrlResolver is closed")

        self._generation += 1
        token = self._generation
        self._reference = reference

        if not reference:
            self._set_state(IDLE)
            return self._state

        # Already a full URL (external host or pre-signed), nothing to resolve
        if is_absolute_url(reference):
            self._set_state(ResolutionState(url=reference))
            return self._state

        self._set_state(ResolutionState(url=None, loading=True))
        result = await self._fetch(reference)

        if token != self._generation:
            logger.debug(f"Discarding stale media resolution for {reference}")
            return self._state

        self._set_state(result)
        return self._state

    async def update(self, reference: Optional[str]) -> ResolutionState:
        """Re-resolve only if the reference differs from the current one."""
        if reference == self._reference and self._generation > 0:
            return self._state
        return await self.resolve(reference)

    async def _fetch(self, reference: str) -> ResolutionState:
        try:
            response = await self._client.get(
                self._endpoint,
                params={"key": reference, "format": "json"},
            )
            if response.status_code < 200 or response.status_code >= 300:
                raise RuntimeError(
                    f"Failed to get signed URL: {response.status_code} - {response.text}"
                )
            data = response.json()
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            logger.warning(f"Error fetching signed URL for {reference}: {e}")
            return ResolutionState(url=None, loading=False, error=str(e) or "Failed to load file")

        # url is null when storage is unconfigured: show a placeholder, not an error
        url = data.get("url") if isinstance(data, dict) else None
        return ResolutionState(url=url or None, loading=False, error=None)

    async def close(self) -> None:
        """Drop interest in any in-flight lookup and release the owned HTTP client."""
        self._generation += 1
        self._closed = True
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SignedUrlResolver":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
