"""Fetch declaration models — immutable once the build graph is materialized."""

from __future__ import annotations

import hashlib
import re
from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from remotefile.errors import InvalidFetchSpecError

_HEX_PATTERN = re.compile(r"[0-9a-f]+")


class HashAlgorithm(str, Enum):
    """Content hash functions a fetch may be pinned to."""

    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"

    @property
    def digest_size(self) -> int:
        """Length of the raw digest in bytes."""
        return hashlib.new(self.value).digest_size


class ArtifactKind(str, Enum):
    """How a published file is meant to be consumed."""

    DATA = "data"
    EXECUTABLE = "executable"


class Digest(BaseModel):
    """An expected or computed content digest.

    ``value`` is always stored as lower-case hex.  Comparisons go through
    ``raw`` so that two digests are equal only when algorithm and digest
    bytes are identical.
    """

    model_config = ConfigDict(frozen=True)

    algorithm: HashAlgorithm
    value: str

    @field_validator("value")
    @classmethod
    def _normalize_hex(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("digest value must not be empty")
        if not _HEX_PATTERN.fullmatch(normalized):
            raise ValueError("digest value must be hexadecimal")
        return normalized

    @model_validator(mode="after")
    def _check_length(self) -> Digest:
        expected = self.algorithm.digest_size * 2
        if len(self.value) != expected:
            raise ValueError(
                f"{self.algorithm.value} digest must be {expected} hex characters, "
                f"got {len(self.value)}"
            )
        return self

    @property
    def raw(self) -> bytes:
        """The digest bytes."""
        return bytes.fromhex(self.value)

    @classmethod
    def parse(cls, text: str) -> Digest:
        """Parse ``"<algorithm>:<hex>"`` into a Digest."""
        algorithm, sep, value = text.strip().partition(":")
        if not sep:
            raise InvalidFetchSpecError(
                f"Digest {text!r} must be written as '<algorithm>:<hex>'"
            )
        try:
            return cls(algorithm=HashAlgorithm(algorithm.lower()), value=value)
        except ValueError as exc:
            raise InvalidFetchSpecError(f"Invalid digest {text!r}: {exc}") from exc

    @classmethod
    def of_bytes(cls, algorithm: HashAlgorithm, data: bytes) -> Digest:
        """Digest an in-memory byte string."""
        return cls(algorithm=algorithm, value=hashlib.new(algorithm.value, data).hexdigest())

    @classmethod
    def from_raw(cls, algorithm: HashAlgorithm, raw: bytes) -> Digest:
        return cls(algorithm=algorithm, value=raw.hex())

    def matches(self, other: Digest) -> bool:
        """Exact comparison of algorithm and raw digest bytes."""
        return self.algorithm == other.algorithm and self.raw == other.raw

    def __str__(self) -> str:
        return f"{self.algorithm.value}:{self.value}"


class FetchSpec(BaseModel):
    """Everything a verified fetch step needs to know about one remote file.

    ``destination_dir`` is relative to the build output root; the published
    file lives at ``destination_dir / output_name``.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    expected_digest: Digest
    destination_dir: PurePosixPath
    output_name: str
    kind: ArtifactKind = ArtifactKind.DATA

    @field_validator("uri")
    @classmethod
    def _require_uri(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("uri must not be empty")
        return value.strip()

    @field_validator("destination_dir")
    @classmethod
    def _require_relative_dir(cls, value: PurePosixPath) -> PurePosixPath:
        if value.is_absolute():
            raise ValueError(f"destination_dir must be relative, got {value}")
        if ".." in value.parts:
            raise ValueError(f"destination_dir must not contain '..', got {value}")
        if value.parts and value.parts[0].startswith("."):
            raise ValueError(
                f"destination_dir must not start in a hidden directory, got {value}"
            )
        return value

    @field_validator("output_name")
    @classmethod
    def _require_bare_name(cls, value: str) -> str:
        if not value or value in {".", ".."} or "/" in value or "\\" in value:
            raise ValueError(f"output_name must be a plain file name, got {value!r}")
        return value

    @property
    def destination_path(self) -> PurePosixPath:
        """Output path relative to the build output root."""
        return self.destination_dir / self.output_name

    @property
    def algorithm(self) -> HashAlgorithm:
        return self.expected_digest.algorithm
