"""Shared test fixtures for remotefile."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from remotefile.core.artifact_store import ContentAddressedStore
from remotefile.core.rule import RemoteFileRule
from remotefile.core.steps import run_steps
from remotefile.models.fetch import ArtifactKind, Digest, FetchSpec, HashAlgorithm
from remotefile.recorders import InMemoryArtifactRecorder


def sha1_of(text: str) -> Digest:
    """SHA-1 digest of the UTF-8 bytes of *text*."""
    return Digest.of_bytes(HashAlgorithm.SHA1, text.encode("utf-8"))


def sha1_of_long(value: int) -> Digest:
    """SHA-1 of a 64-bit little-endian integer — a digest nothing here matches."""
    return Digest(
        algorithm=HashAlgorithm.SHA1,
        value=hashlib.sha1(value.to_bytes(8, "little", signed=True)).hexdigest(),
    )


# ---------------------------------------------------------------------------
# Fake transports
# ---------------------------------------------------------------------------


class StaticTransport:
    """Writes fixed bytes for every fetch and remembers what it was asked."""

    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.calls: list[tuple[str, Path]] = []

    def fetch(self, uri: str, output: Path) -> bool:
        self.calls.append((uri, output))
        output.write_bytes(self.payload)
        return True


class FailingTransport:
    """Reports failure without raising, optionally after a partial write."""

    def __init__(self, partial: bytes = b"") -> None:
        self.partial = partial
        self.calls: list[tuple[str, Path]] = []

    def fetch(self, uri: str, output: Path) -> bool:
        self.calls.append((uri, output))
        if self.partial:
            output.write_bytes(self.partial)
        return False


class ExplodingTransport:
    """Raises a connection-level fault for every fetch."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Path]] = []

    def fetch(self, uri: str, output: Path) -> bool:
        self.calls.append((uri, output))
        raise ConnectionResetError(f"connection reset while fetching {uri}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    """Provide a build output root inside the test's temp directory."""
    return tmp_path / "build-out"


@pytest.fixture
def recorder() -> InMemoryArtifactRecorder:
    """Provide a fresh in-memory artifact recorder."""
    return InMemoryArtifactRecorder()


@pytest.fixture
def artifact_store(tmp_path: Path) -> ContentAddressedStore:
    """Provide a fresh ContentAddressedStore in a temp directory."""
    return ContentAddressedStore(tmp_path / "artifacts")


@pytest.fixture
def make_spec() -> Callable[..., FetchSpec]:
    """Factory fixture: build a FetchSpec with sensible defaults."""

    def _factory(
        content: str = "I like cake",
        **overrides: Any,
    ) -> FetchSpec:
        defaults: dict[str, Any] = {
            "uri": "http://example.com/output.txt",
            "expected_digest": sha1_of(content),
            "destination_dir": "cake/walk",
            "output_name": "output.txt",
            "kind": ArtifactKind.DATA,
        }
        defaults.update(overrides)
        return FetchSpec(**defaults)

    return _factory


@pytest.fixture
def run_remote_file(
    output_root: Path,
) -> Callable[..., tuple[Path, InMemoryArtifactRecorder, Any]]:
    """Declare ``//cake:walk``, run its build steps, return the output path.

    Returns ``(output_path, recorder, result)``.  When no transport is passed,
    one that serves *contents* is used.
    """

    def _run(
        contents: str,
        digest: Digest,
        *,
        transport: Any = None,
        kind: ArtifactKind = ArtifactKind.DATA,
    ) -> tuple[Path, InMemoryArtifactRecorder, Any]:
        if transport is None:
            transport = StaticTransport(contents.encode("utf-8"))
        rule = RemoteFileRule.declare(
            "//cake:walk",
            url="http://example.com",
            digest=digest,
            out="output.txt",
            kind=kind,
        )
        recorder = InMemoryArtifactRecorder()
        steps = rule.get_build_steps(
            transport=transport, recorder=recorder, output_root=output_root
        )
        result = run_steps(steps)
        return output_root / rule.path_to_output(), recorder, result

    return _run
