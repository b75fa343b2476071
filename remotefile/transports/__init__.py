"""Transport backends that satisfy the ``FetchCapability`` protocol."""

from __future__ import annotations

from remotefile.transports.base import FetchCapability
from remotefile.transports.http import HttpTransport
from remotefile.transports.local import LocalFileTransport
from remotefile.transports.routing import SchemeRoutingTransport, default_transport

__all__ = [
    "FetchCapability",
    "HttpTransport",
    "LocalFileTransport",
    "SchemeRoutingTransport",
    "default_transport",
]
