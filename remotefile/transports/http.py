"""HTTP(S) transport backed by httpx.

The response body is streamed in chunks straight into the output path handed
over by the fetch step, so large artifacts never sit in memory.  Any non-2xx
status or httpx-level error is reported as ``FetchFailure``; the step decides
what happens to whatever was written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType

import httpx

from remotefile.errors import FetchFailure

logger = logging.getLogger(__name__)


class HttpTransport:
    """Fetch ``http://`` and ``https://`` URIs.

    Parameters
    ----------
    client:
        An existing ``httpx.Client`` to issue requests with (tests pass one
        built on ``httpx.MockTransport``).  When omitted, a client is created
        lazily and closed by ``close()``.
    timeout_seconds:
        Request timeout for a lazily created client.
    user_agent:
        ``User-Agent`` header for a lazily created client.
    chunk_size:
        Bytes read from the response per write.
    follow_redirects:
        Whether a lazily created client follows redirects.
    """

    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        timeout_seconds: float = 60.0,
        user_agent: str = "remotefile",
        chunk_size: int = 1 << 20,
        follow_redirects: bool = True,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._chunk_size = chunk_size
        self._follow_redirects = follow_redirects

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout_seconds,
                follow_redirects=self._follow_redirects,
                headers={"User-Agent": self._user_agent},
            )
        return self._client

    def close(self) -> None:
        """Close the client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # FetchCapability
    # ------------------------------------------------------------------

    def fetch(self, uri: str, output: Path) -> bool:
        """Stream ``GET uri`` into *output*."""
        client = self._get_client()
        written = 0
        try:
            with client.stream("GET", uri) as response:
                if not response.is_success:
                    raise FetchFailure(
                        f"GET {uri} returned HTTP {response.status_code}",
                        uri=uri,
                    )
                with output.open("wb") as stream:
                    for chunk in response.iter_bytes(self._chunk_size):
                        stream.write(chunk)
                        written += len(chunk)
        except httpx.HTTPError as exc:
            raise FetchFailure(f"GET {uri} failed: {exc}", uri=uri) from exc

        logger.debug("HttpTransport: wrote %d bytes from %s to %s", written, uri, output)
        return True
