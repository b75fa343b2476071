"""``file://`` transport — copies a local file as if it were fetched."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from remotefile.errors import FetchFailure

logger = logging.getLogger(__name__)


class LocalFileTransport:
    """Fetch ``file://`` URIs from the local filesystem.

    A missing or unreadable source is reported as ``FetchFailure``.
    """

    def __init__(self, *, chunk_size: int = 1 << 20) -> None:
        self._chunk_size = chunk_size

    @staticmethod
    def source_path(uri: str) -> Path:
        """Map a ``file://`` URI onto a filesystem path."""
        parsed = urlparse(uri)
        if parsed.scheme != "file":
            raise FetchFailure(f"LocalFileTransport cannot fetch {uri!r}", uri=uri)
        return Path(url2pathname(parsed.path))

    def fetch(self, uri: str, output: Path) -> bool:
        source = self.source_path(uri)
        try:
            reader = source.open("rb")
        except OSError as exc:
            raise FetchFailure(f"Cannot read {source}: {exc}", uri=uri) from exc

        with reader, output.open("wb") as writer:
            shutil.copyfileobj(reader, writer, self._chunk_size)

        logger.debug("LocalFileTransport: copied %s to %s", source, output)
        return True
