"""Scheme-based transport selection."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urlparse

from remotefile.config import FetchSettings
from remotefile.errors import FetchFailure
from remotefile.transports.base import FetchCapability
from remotefile.transports.http import HttpTransport
from remotefile.transports.local import LocalFileTransport

logger = logging.getLogger(__name__)


class SchemeRoutingTransport:
    """Dispatch each fetch to the transport registered for the URI scheme.

    Parameters
    ----------
    routes:
        Mapping of lower-case scheme (``"https"``, ``"file"``) to transport.
    """

    def __init__(self, routes: Mapping[str, FetchCapability]) -> None:
        self._routes: dict[str, FetchCapability] = {
            scheme.lower(): transport for scheme, transport in routes.items()
        }

    @property
    def schemes(self) -> list[str]:
        return sorted(self._routes)

    def register(self, scheme: str, transport: FetchCapability) -> None:
        self._routes[scheme.lower()] = transport

    def transport_for(self, uri: str) -> FetchCapability:
        scheme = urlparse(uri).scheme.lower()
        try:
            return self._routes[scheme]
        except KeyError:
            raise FetchFailure(
                f"No transport registered for scheme {scheme!r} "
                f"(known: {', '.join(self.schemes) or 'none'})",
                uri=uri,
            ) from None

    def fetch(self, uri: str, output: Path) -> bool:
        transport = self.transport_for(uri)
        logger.debug("Routing %s to %s", uri, type(transport).__name__)
        return transport.fetch(uri, output)

    def close(self) -> None:
        """Close every routed transport that holds resources."""
        closed: set[int] = set()
        for transport in self._routes.values():
            close = getattr(transport, "close", None)
            if close is not None and id(transport) not in closed:
                close()
                closed.add(id(transport))


def default_transport(config: FetchSettings | None = None) -> SchemeRoutingTransport:
    """Build the standard router: HTTP(S) via httpx, ``file://`` via copy."""
    config = config or FetchSettings()
    http = HttpTransport(
        timeout_seconds=config.http_timeout_seconds,
        user_agent=config.user_agent,
        chunk_size=config.chunk_size,
        follow_redirects=config.follow_redirects,
    )
    local = LocalFileTransport(chunk_size=config.chunk_size)
    return SchemeRoutingTransport({"http": http, "https": http, "file": local})
