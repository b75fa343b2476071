"""Artifact recorders — how a step tells the build system what it produced.

The fetch step depends only on the ``ArtifactRecorder`` protocol.  Two
implementations ship here:

* ``InMemoryArtifactRecorder`` keeps the recorded paths in order; the harness
  (or a test) inspects them afterwards.
* ``CachingArtifactRecorder`` copies each recorded output into a
  ``ContentAddressedStore`` so later builds can reuse it.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from remotefile.core.artifact_store import ContentAddressedStore
from remotefile.models.artifacts import ArtifactRef

logger = logging.getLogger(__name__)


@runtime_checkable
class ArtifactRecorder(Protocol):
    """Protocol for build-output registration."""

    def record(self, path: PurePosixPath) -> None:
        """Mark *path* (relative to the output root) as a cacheable output."""
        ...


class InMemoryArtifactRecorder:
    """Collects recorded paths in call order."""

    def __init__(self) -> None:
        self._recorded: list[PurePosixPath] = []

    @property
    def recorded(self) -> list[PurePosixPath]:
        return list(self._recorded)

    def record(self, path: PurePosixPath) -> None:
        self._recorded.append(PurePosixPath(path))


class CachingArtifactRecorder:
    """Stores every recorded output in a content-addressed cache.

    Parameters
    ----------
    store:
        The cache to copy recorded outputs into.
    output_root:
        Build output root that recorded paths are relative to.
    """

    def __init__(self, store: ContentAddressedStore, output_root: Path) -> None:
        self._store = store
        self._output_root = Path(output_root)
        self._refs: dict[str, ArtifactRef] = {}

    @property
    def refs(self) -> list[ArtifactRef]:
        """One ref per recorded path; re-recording a path replaces its ref."""
        return list(self._refs.values())

    def record(self, path: PurePosixPath) -> None:
        absolute = self._output_root / path
        artifact = self._store.store_file(absolute)
        mode = absolute.stat().st_mode
        ref = self._store.make_ref(
            artifact.content_address,
            path=PurePosixPath(path).as_posix(),
            executable=bool(mode & stat.S_IXUSR),
        )
        self._refs[ref.path] = ref
        logger.info("Cached %s as %s", ref.path, ref.content_address)
