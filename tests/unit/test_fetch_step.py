"""Unit tests for VerifiedFetchStep — verify before publish, then record."""

from __future__ import annotations

import hashlib
import stat
from pathlib import Path, PurePosixPath

import pytest

from conftest import (
    ExplodingTransport,
    FailingTransport,
    StaticTransport,
    sha1_of,
    sha1_of_long,
)
from remotefile.core import fetch_step
from remotefile.core.fetch_step import VerifiedFetchStep, execute_fetch
from remotefile.errors import (
    ArtifactIOError,
    FetchFailure,
    IntegrityVerificationFailure,
)
from remotefile.models.fetch import ArtifactKind, Digest, HashAlgorithm
from remotefile.models.results import ErrorKind
from remotefile.recorders import CachingArtifactRecorder

posix_only = pytest.mark.skipif(
    not fetch_step.supports_execute_bits(), reason="no POSIX execute bits"
)

ALL_EXECUTE = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def _is_executable(path: Path) -> bool:
    return path.stat().st_mode & ALL_EXECUTE == ALL_EXECUTE


# ---------------------------------------------------------------------------
# Test: publishing verified content
# ---------------------------------------------------------------------------


class TestPublishAfterVerification:
    """A matching digest publishes the file and records it."""

    def test_saves_to_final_location_after_digest_is_verified(self, run_remote_file):
        output, _, result = run_remote_file("I like cake", sha1_of("I like cake"))

        assert result.is_success
        assert output.exists()
        assert output.read_bytes() == b"I like cake"

    def test_records_output_exactly_once(self, run_remote_file):
        _, recorder, _ = run_remote_file("I like cake", sha1_of("I like cake"))

        assert recorder.recorded == [PurePosixPath("cake/walk/output.txt")]

    def test_creates_missing_parent_directories(self, make_spec, recorder, output_root):
        spec = make_spec(destination_dir="deeply/nested/pkg")
        result = execute_fetch(
            spec, StaticTransport(b"I like cake"), recorder, output_root=output_root
        )

        assert result.is_success
        assert (output_root / "deeply/nested/pkg/output.txt").is_file()

    def test_run_returns_published_path(self, make_spec, recorder, output_root):
        step = VerifiedFetchStep(
            make_spec(),
            transport=StaticTransport(b"I like cake"),
            recorder=recorder,
            output_root=output_root,
        )
        published = step.run()

        assert published == (output_root / "cake/walk/output.txt").resolve()
        assert step.output_path == output_root / "cake/walk/output.txt"

    def test_transport_receives_uri_and_staging_path(self, make_spec, recorder, output_root):
        transport = StaticTransport(b"I like cake")
        spec = make_spec()
        execute_fetch(spec, transport, recorder, output_root=output_root)

        assert len(transport.calls) == 1
        uri, staged = transport.calls[0]
        assert uri == spec.uri
        assert staged != output_root / spec.destination_path
        assert staged.is_relative_to(output_root.resolve() / ".staging")

    def test_staging_is_removed_after_publish(self, make_spec, recorder, output_root):
        transport = StaticTransport(b"I like cake")
        execute_fetch(make_spec(), transport, recorder, output_root=output_root)

        _, staged = transport.calls[0]
        assert not staged.exists()
        assert not staged.parent.exists()

    def test_sha256_digest(self, make_spec, recorder, output_root):
        payload = b"sha256 pinned payload"
        spec = make_spec(expected_digest=Digest.of_bytes(HashAlgorithm.SHA256, payload))
        result = execute_fetch(spec, StaticTransport(payload), recorder, output_root=output_root)

        assert result.is_success


# ---------------------------------------------------------------------------
# Test: digest mismatch
# ---------------------------------------------------------------------------


class TestIntegrityVerification:
    """A mismatched digest never reaches the destination."""

    def test_does_not_save_until_digest_is_verified(self, run_remote_file):
        output, recorder, result = run_remote_file("eat more cheese", sha1_of_long(42))

        assert not output.exists()
        assert result.error_kind is ErrorKind.INTEGRITY_VERIFICATION_FAILURE
        assert result.exit_code != 0
        assert recorder.recorded == []

    def test_failure_message_names_both_digests(self, run_remote_file):
        expected = sha1_of_long(42)
        actual = sha1_of("eat more cheese")
        _, _, result = run_remote_file("eat more cheese", expected)

        assert expected.value in result.message
        assert actual.value in result.message

    def test_run_raises_with_expected_and_actual(self, make_spec, recorder, output_root):
        spec = make_spec(expected_digest=sha1_of_long(42))
        step = VerifiedFetchStep(
            spec,
            transport=StaticTransport(b"eat more cheese"),
            recorder=recorder,
            output_root=output_root,
        )
        with pytest.raises(IntegrityVerificationFailure) as excinfo:
            step.run()

        assert excinfo.value.expected == sha1_of_long(42)
        assert excinfo.value.actual == sha1_of("eat more cheese")

    def test_staging_is_deleted_on_mismatch(self, make_spec, recorder, output_root):
        transport = StaticTransport(b"eat more cheese")
        execute_fetch(
            make_spec(expected_digest=sha1_of_long(42)),
            transport,
            recorder,
            output_root=output_root,
        )

        _, staged = transport.calls[0]
        assert not staged.exists()

    def test_prior_destination_is_left_alone(self, make_spec, recorder, output_root):
        destination = output_root / "cake/walk/output.txt"
        destination.parent.mkdir(parents=True)
        destination.write_bytes(b"previous build")

        result = execute_fetch(
            make_spec(expected_digest=sha1_of_long(42)),
            StaticTransport(b"eat more cheese"),
            recorder,
            output_root=output_root,
        )

        assert not result.is_success
        assert destination.read_bytes() == b"previous build"

    def test_algorithm_mismatch_is_not_a_match(self):
        sha1 = Digest.of_bytes(HashAlgorithm.SHA1, b"x")
        sha256 = Digest.of_bytes(HashAlgorithm.SHA256, b"x")
        assert not sha1.matches(sha256)


# ---------------------------------------------------------------------------
# Test: transport failures
# ---------------------------------------------------------------------------


class TestTransportFailure:
    """Any transport failure is a FetchFailure and publishes nothing."""

    def test_does_not_save_if_download_fails(self, run_remote_file):
        output, recorder, result = run_remote_file(
            "I also like cake",
            sha1_of("I also like cake"),
            transport=ExplodingTransport(),
        )

        assert not output.exists()
        assert result.error_kind is ErrorKind.FETCH_FAILURE
        assert recorder.recorded == []

    def test_false_return_is_fetch_failure(self, make_spec, recorder, output_root):
        result = execute_fetch(
            make_spec(), FailingTransport(), recorder, output_root=output_root
        )

        assert result.error_kind is ErrorKind.FETCH_FAILURE
        assert not (output_root / "cake/walk/output.txt").exists()

    def test_raised_fault_keeps_its_cause(self, make_spec, recorder, output_root):
        step = VerifiedFetchStep(
            make_spec(),
            transport=ExplodingTransport(),
            recorder=recorder,
            output_root=output_root,
        )
        with pytest.raises(FetchFailure) as excinfo:
            step.run()

        assert isinstance(excinfo.value.__cause__, ConnectionResetError)
        assert "connection reset" in str(excinfo.value)

    def test_partial_write_is_discarded(self, make_spec, recorder, output_root):
        transport = FailingTransport(partial=b"I li")
        execute_fetch(make_spec(), transport, recorder, output_root=output_root)

        _, staged = transport.calls[0]
        assert not staged.exists()
        assert not (output_root / "cake/walk/output.txt").exists()

    def test_success_without_a_file_is_fetch_failure(self, make_spec, recorder, output_root):
        class _SilentTransport:
            def fetch(self, uri: str, output: Path) -> bool:
                return True

        result = execute_fetch(make_spec(), _SilentTransport(), recorder, output_root=output_root)

        assert result.error_kind is ErrorKind.FETCH_FAILURE

    def test_prior_destination_survives_failed_fetch(self, make_spec, recorder, output_root):
        destination = output_root / "cake/walk/output.txt"
        destination.parent.mkdir(parents=True)
        destination.write_bytes(b"previous build")

        execute_fetch(make_spec(), ExplodingTransport(), recorder, output_root=output_root)

        assert destination.read_bytes() == b"previous build"


# ---------------------------------------------------------------------------
# Test: permissions
# ---------------------------------------------------------------------------


class TestPermissions:
    """EXECUTABLE gets u/g/o execute bits; DATA does not."""

    @posix_only
    def test_data_is_not_made_executable(self, run_remote_file):
        output, _, _ = run_remote_file(
            "I like cake", sha1_of("I like cake"), kind=ArtifactKind.DATA
        )

        assert output.exists()
        assert not _is_executable(output)

    @posix_only
    def test_executable_gets_execute_bits(self, run_remote_file):
        output, _, _ = run_remote_file(
            "I like cake", sha1_of("I like cake"), kind=ArtifactKind.EXECUTABLE
        )

        assert output.exists()
        assert _is_executable(output)
        assert sha1_of("I like cake").matches(Digest.of_bytes(HashAlgorithm.SHA1, output.read_bytes()))

    def test_chmod_is_skipped_without_execute_bits(
        self, make_spec, recorder, output_root, monkeypatch
    ):
        monkeypatch.setattr(fetch_step, "supports_execute_bits", lambda: False)
        chmod_calls: list[Path] = []
        monkeypatch.setattr(Path, "chmod", lambda self, mode: chmod_calls.append(self))

        result = execute_fetch(
            make_spec(kind=ArtifactKind.EXECUTABLE),
            StaticTransport(b"I like cake"),
            recorder,
            output_root=output_root,
        )

        assert result.is_success
        assert chmod_calls == []

    def test_chmod_failure_is_io_error(self, make_spec, recorder, output_root, monkeypatch):
        monkeypatch.setattr(fetch_step, "supports_execute_bits", lambda: True)

        def _deny(self, mode):
            raise PermissionError("chmod denied")

        monkeypatch.setattr(Path, "chmod", _deny)
        result = execute_fetch(
            make_spec(kind=ArtifactKind.EXECUTABLE),
            StaticTransport(b"I like cake"),
            recorder,
            output_root=output_root,
        )

        assert result.error_kind is ErrorKind.IO_ERROR
        assert recorder.recorded == []


# ---------------------------------------------------------------------------
# Test: local I/O failures
# ---------------------------------------------------------------------------


class TestLocalIOFailure:
    """Filesystem failures map to IO_ERROR."""

    def test_rename_failure_is_io_error(self, make_spec, recorder, output_root, monkeypatch):
        def _refuse(src, dst):
            raise OSError("cross-device link")

        monkeypatch.setattr(fetch_step.os, "replace", _refuse)
        result = execute_fetch(
            make_spec(), StaticTransport(b"I like cake"), recorder, output_root=output_root
        )

        assert result.error_kind is ErrorKind.IO_ERROR
        assert not (output_root / "cake/walk/output.txt").exists()
        assert recorder.recorded == []

    def test_destination_directory_in_the_way(self, make_spec, recorder, output_root):
        (output_root / "cake/walk/output.txt").mkdir(parents=True)

        step = VerifiedFetchStep(
            make_spec(),
            transport=StaticTransport(b"I like cake"),
            recorder=recorder,
            output_root=output_root,
        )
        with pytest.raises(ArtifactIOError):
            step.run()

    def test_recorder_os_error_is_io_error(self, make_spec, output_root):
        class _BrokenRecorder:
            def record(self, path: PurePosixPath) -> None:
                raise OSError("cache volume is read-only")

        result = execute_fetch(
            make_spec(), StaticTransport(b"I like cake"), _BrokenRecorder(), output_root=output_root
        )

        assert result.error_kind is ErrorKind.IO_ERROR

    def test_corrupt_cache_blob_is_io_error(self, make_spec, output_root, artifact_store):
        digest = hashlib.sha256(b"I like cake").hexdigest()
        blob = artifact_store.base_path / digest[:2] / digest[2:4] / f"{digest}.dat"
        blob.parent.mkdir(parents=True)
        blob.write_bytes(b"not cake at all")
        recorder = CachingArtifactRecorder(artifact_store, output_root)

        result = execute_fetch(
            make_spec(), StaticTransport(b"I like cake"), recorder, output_root=output_root
        )

        assert result.error_kind is ErrorKind.IO_ERROR
        assert "ArtifactIntegrityError" in result.message
        assert recorder.refs == []

    def test_recorder_error_keeps_its_cause(self, make_spec, recorder, output_root):
        class _RejectingRecorder:
            def record(self, path: PurePosixPath) -> None:
                raise RuntimeError("cache index locked")

        step = VerifiedFetchStep(
            make_spec(),
            transport=StaticTransport(b"I like cake"),
            recorder=_RejectingRecorder(),
            output_root=output_root,
        )
        with pytest.raises(ArtifactIOError, match="cache index locked") as excinfo:
            step.run()
        assert isinstance(excinfo.value.__cause__, RuntimeError)


# ---------------------------------------------------------------------------
# Test: idempotence
# ---------------------------------------------------------------------------


class TestIdempotence:
    """Re-running with identical inputs yields the same published file."""

    def test_second_run_republishes_identically(self, make_spec, recorder, output_root):
        spec = make_spec()
        transport = StaticTransport(b"I like cake")

        first = execute_fetch(spec, transport, recorder, output_root=output_root)
        first_bytes = (output_root / spec.destination_path).read_bytes()
        second = execute_fetch(spec, transport, recorder, output_root=output_root)
        second_bytes = (output_root / spec.destination_path).read_bytes()

        assert first.is_success and second.is_success
        assert first_bytes == second_bytes == b"I like cake"
        assert recorder.recorded == [spec.destination_path, spec.destination_path]

    def test_each_run_uses_fresh_staging(self, make_spec, recorder, output_root):
        spec = make_spec()
        transport = StaticTransport(b"I like cake")
        execute_fetch(spec, transport, recorder, output_root=output_root)
        execute_fetch(spec, transport, recorder, output_root=output_root)

        (_, first_staging), (_, second_staging) = transport.calls
        assert first_staging != second_staging

    @posix_only
    def test_rerun_as_data_drops_execute_bits(self, make_spec, recorder, output_root):
        transport = StaticTransport(b"I like cake")
        execute_fetch(
            make_spec(kind=ArtifactKind.EXECUTABLE), transport, recorder, output_root=output_root
        )
        execute_fetch(make_spec(kind=ArtifactKind.DATA), transport, recorder, output_root=output_root)

        assert not _is_executable(output_root / "cake/walk/output.txt")
