"""Content-addressed artifact models for recorded build outputs."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class ArtifactRef(BaseModel):
    """A reference to a cached build output.

    ``path`` is the output path relative to the build output root;
    ``content_address`` is the SHA-256 of the bytes recorded for it.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    content_address: str  # "sha256:<hex>"
    size_bytes: int = 0
    executable: bool = False


class ContentAddressedArtifact(BaseModel):
    """Metadata for a stored blob — the bytes themselves live in the store."""

    model_config = ConfigDict(frozen=True)

    content_address: str  # "sha256:<hex>"
    size_bytes: int
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
