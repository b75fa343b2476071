"""Content-addressed cache of recorded build outputs.

Storage layout: {base_path}/{sha256[0:2]}/{sha256[2:4]}/{sha256}.dat
No delete method — cached blobs are immutable once stored.
"""

from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path

from remotefile.core.hasher import sha256_file_hex
from remotefile.errors import RemoteFileError
from remotefile.models.artifacts import ArtifactRef, ContentAddressedArtifact


class ArtifactIntegrityError(RemoteFileError):
    """Raised when a stored blob's hash does not match its address."""


class ContentAddressedStore:
    """SHA-256 keyed, immutable blob store.

    Every blob is stored under its SHA-256 digest.  Storing the same
    content twice is a no-op (idempotent).  There is no update or delete.

    Parameters
    ----------
    base_path:
        Root directory for blob storage.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    @staticmethod
    def _extract_digest(content_address: str) -> str:
        """Strip the ``sha256:`` prefix from a content address, if present."""
        return content_address.removeprefix("sha256:")

    def _blob_path(self, sha256_digest: str) -> Path:
        """Layout: {base}/{sha256[0:2]}/{sha256[2:4]}/{sha256}.dat"""
        return self._base / sha256_digest[:2] / sha256_digest[2:4] / f"{sha256_digest}.dat"

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store_file(self, source: Path) -> ContentAddressedArtifact:
        """Copy *source* into the store and return its metadata.

        If the content already exists, verifies it and leaves it alone.
        New blobs are written to a temporary sibling and renamed into place.
        """
        source = Path(source)
        digest = sha256_file_hex(source)
        path = self._blob_path(digest)

        if path.exists():
            if not self.verify(digest):
                raise ArtifactIntegrityError(
                    f"Existing blob at {digest} failed integrity check"
                )
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
            try:
                shutil.copyfile(source, tmp_path)
                os.replace(tmp_path, path)
            finally:
                tmp_path.unlink(missing_ok=True)

        return ContentAddressedArtifact(
            content_address=f"sha256:{digest}",
            size_bytes=path.stat().st_size,
        )

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, content_address: str) -> bytes:
        """Return blob bytes for ``sha256:<hex>`` or a bare hex digest."""
        path = self._blob_path(self._extract_digest(content_address))
        if not path.exists():
            raise FileNotFoundError(f"Artifact not found: {content_address}")
        return path.read_bytes()

    # ------------------------------------------------------------------
    # Check and verify
    # ------------------------------------------------------------------

    def exists(self, content_address: str) -> bool:
        return self._blob_path(self._extract_digest(content_address)).exists()

    def verify(self, content_address: str) -> bool:
        """Re-hash stored bytes and compare against the content address."""
        digest = self._extract_digest(content_address)
        path = self._blob_path(digest)
        if not path.exists():
            return False
        return sha256_file_hex(path) == digest

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def make_ref(
        self,
        content_address: str,
        *,
        path: str,
        executable: bool = False,
    ) -> ArtifactRef:
        """Create an ArtifactRef tying an output path to a stored blob."""
        digest = self._extract_digest(content_address)
        blob = self._blob_path(digest)
        size = blob.stat().st_size if blob.exists() else 0
        return ArtifactRef(
            path=path,
            content_address=f"sha256:{digest}",
            size_bytes=size,
            executable=executable,
        )
