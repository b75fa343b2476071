"""Streaming digest helpers for staged and published files."""

from __future__ import annotations

import hashlib
from pathlib import Path

from remotefile.models.fetch import Digest, HashAlgorithm

DEFAULT_CHUNK_SIZE = 1 << 20


def hash_file(
    path: Path,
    algorithm: HashAlgorithm,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Digest:
    """Digest a file's full contents without reading it into memory at once."""
    hasher = hashlib.new(algorithm.value)
    with path.open("rb") as stream:
        for chunk in iter(lambda: stream.read(chunk_size), b""):
            hasher.update(chunk)
    return Digest.from_raw(algorithm, hasher.digest())


def sha256_file_hex(path: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """SHA-256 hex digest of a file, as used for content addresses."""
    return hash_file(path, HashAlgorithm.SHA256, chunk_size=chunk_size).value
