"""Verified fetch step — fetch, verify, publish, record.

The step runs a fixed, strictly ordered lifecycle:

    resolve destination -> stage -> fetch -> verify -> publish
        -> apply permissions -> record

Unverified bytes only ever live in a private staging directory under the
output root.  The destination is touched exactly once, by a single
``os.replace`` after the digest has matched, so readers of the destination
see either the previous file or the verified one and nothing in between.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import uuid
from pathlib import Path

from remotefile.core.hasher import DEFAULT_CHUNK_SIZE, hash_file
from remotefile.errors import (
    ArtifactIOError,
    FetchFailure,
    IntegrityVerificationFailure,
    RemoteFileError,
)
from remotefile.models.fetch import ArtifactKind, FetchSpec
from remotefile.models.results import SUCCESS, ErrorKind, StepExecutionResult
from remotefile.recorders import ArtifactRecorder
from remotefile.transports.base import FetchCapability

logger = logging.getLogger(__name__)

EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH

_ERROR_KINDS: dict[type[RemoteFileError], ErrorKind] = {
    FetchFailure: ErrorKind.FETCH_FAILURE,
    IntegrityVerificationFailure: ErrorKind.INTEGRITY_VERIFICATION_FAILURE,
    ArtifactIOError: ErrorKind.IO_ERROR,
}


def supports_execute_bits() -> bool:
    """Whether the platform has POSIX owner/group/other execute bits."""
    return os.name == "posix"


class VerifiedFetchStep:
    """One build step that publishes a remote file only after verifying it.

    Parameters
    ----------
    spec:
        What to fetch, its expected digest, and where it is published.
    transport:
        Fetch capability that writes the remote content to a given path.
    recorder:
        Receives the destination path once the file is published.
    output_root:
        Build output root; the destination must resolve inside it.
    staging_dir_name:
        Directory under *output_root* holding per-run staging directories.
    chunk_size:
        Read size used while hashing the staged file.
    """

    short_name = "remote_file"

    def __init__(
        self,
        spec: FetchSpec,
        *,
        transport: FetchCapability,
        recorder: ArtifactRecorder,
        output_root: Path,
        staging_dir_name: str = ".staging",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._spec = spec
        self._transport = transport
        self._recorder = recorder
        self._output_root = Path(output_root)
        self._staging_dir_name = staging_dir_name
        self._chunk_size = chunk_size

    @property
    def spec(self) -> FetchSpec:
        return self._spec

    @property
    def description(self) -> str:
        return f"fetch {self._spec.uri} to {self._spec.destination_path}"

    @property
    def output_path(self) -> Path:
        """Absolute path the file is published at."""
        return self._output_root / self._spec.destination_path

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def execute(self) -> StepExecutionResult:
        """Run the step and translate failures into an exit status."""
        try:
            self.run()
        except RemoteFileError as exc:
            kind = _ERROR_KINDS.get(type(exc), ErrorKind.IO_ERROR)
            logger.error(
                "%s [%s] failed (%s): %s",
                self.short_name,
                self._spec.destination_path,
                kind.value,
                exc,
            )
            return StepExecutionResult.failure(kind, str(exc))
        return SUCCESS

    def run(self) -> Path:
        """Run the step, raising typed errors.  Returns the published path."""
        destination = self._resolve_destination()
        staging_dir = self._create_staging_dir()
        staged = staging_dir / self._spec.output_name

        logger.info("Fetching %s into staging %s", self._spec.uri, staged)
        try:
            self._fetch_into(staged)
            self._verify(staged)
            self._publish(staged, destination)
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

        self._apply_permissions(destination)
        try:
            self._recorder.record(self._spec.destination_path)
        except Exception as exc:
            raise ArtifactIOError(
                f"Cannot record {destination} as a build output: "
                f"{type(exc).__name__}: {exc}",
                path=destination,
            ) from exc
        logger.info(
            "Published %s (%s)", self._spec.destination_path, self._spec.expected_digest
        )
        return destination

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _resolve_destination(self) -> Path:
        """Create the destination's parent and check it stays inside the root."""
        root = self._output_root.resolve()
        parent = root / self._spec.destination_dir
        self._check_inside_root(parent, root)
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArtifactIOError(
                f"Cannot create output directory {parent}: {exc}", path=parent
            ) from exc
        # Checked again: a symlink may have appeared while creating directories.
        return self._check_inside_root(parent, root) / self._spec.output_name

    @staticmethod
    def _check_inside_root(parent: Path, root: Path) -> Path:
        resolved = parent.resolve()
        if not resolved.is_relative_to(root):
            raise ArtifactIOError(
                f"Output directory {parent} resolves outside the output root {root}",
                path=parent,
            )
        return resolved

    def _create_staging_dir(self) -> Path:
        staging_dir = (
            self._output_root.resolve() / self._staging_dir_name / uuid.uuid4().hex
        )
        try:
            staging_dir.mkdir(parents=True)
        except OSError as exc:
            raise ArtifactIOError(
                f"Cannot create staging directory {staging_dir}: {exc}",
                path=staging_dir,
            ) from exc
        return staging_dir

    def _fetch_into(self, staged: Path) -> None:
        uri = self._spec.uri
        try:
            ok = self._transport.fetch(uri, staged)
        except FetchFailure:
            raise
        except Exception as exc:
            # Any transport fault is a fetch failure; the cause stays chained.
            raise FetchFailure(
                f"Transport fault while fetching {uri}: {type(exc).__name__}: {exc}",
                uri=uri,
            ) from exc

        if not ok:
            raise FetchFailure(f"Transport reported failure fetching {uri}", uri=uri)
        if not staged.is_file():
            raise FetchFailure(
                f"Transport reported success for {uri} but wrote no file", uri=uri
            )

    def _verify(self, staged: Path) -> None:
        expected = self._spec.expected_digest
        try:
            actual = hash_file(staged, self._spec.algorithm, chunk_size=self._chunk_size)
        except OSError as exc:
            raise ArtifactIOError(
                f"Cannot read staged file {staged}: {exc}", path=staged
            ) from exc

        if not expected.matches(actual):
            logger.warning(
                "Rejecting %s: expected %s, got %s", self._spec.uri, expected, actual
            )
            raise IntegrityVerificationFailure(
                uri=self._spec.uri, expected=expected, actual=actual
            )

    def _publish(self, staged: Path, destination: Path) -> None:
        try:
            os.replace(staged, destination)
        except OSError as exc:
            raise ArtifactIOError(
                f"Cannot move {staged} to {destination}: {exc}", path=destination
            ) from exc

    def _apply_permissions(self, destination: Path) -> None:
        if self._spec.kind is not ArtifactKind.EXECUTABLE:
            return
        if not supports_execute_bits():
            logger.debug("Skipping chmod of %s: no execute bits on %s", destination, os.name)
            return
        try:
            mode = destination.stat().st_mode
            destination.chmod(stat.S_IMODE(mode) | EXECUTE_BITS)
        except OSError as exc:
            raise ArtifactIOError(
                f"Cannot make {destination} executable: {exc}", path=destination
            ) from exc

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._spec.uri!r} -> {str(self._spec.destination_path)!r}>"


def execute_fetch(
    spec: FetchSpec,
    transport: FetchCapability,
    recorder: ArtifactRecorder,
    *,
    output_root: Path,
    staging_dir_name: str = ".staging",
) -> StepExecutionResult:
    """Run a single verified fetch and return its exit status."""
    step = VerifiedFetchStep(
        spec,
        transport=transport,
        recorder=recorder,
        output_root=output_root,
        staging_dir_name=staging_dir_name,
    )
    return step.execute()
