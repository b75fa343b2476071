"""The fetch capability a verified fetch step consumes.

A transport is any object with ``fetch(uri, output) -> bool``.  It must write
the fetched bytes to *output* and nowhere else.  Failure may be reported either
by returning ``False`` or by raising; the step treats both the same way.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class FetchCapability(Protocol):
    """Protocol for transport backends (HTTP, local files, test fakes)."""

    def fetch(self, uri: str, output: Path) -> bool:
        """Write the content at *uri* to *output*.

        Returns
        -------
        bool
            ``True`` if the full content was written, ``False`` otherwise.
        """
        ...
