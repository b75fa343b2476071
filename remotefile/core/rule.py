"""``remote_file`` build rule — declares a verified download as a build output.

A rule is declared once per target when the build graph is materialized.
It derives an immutable ``FetchSpec`` and expands into the step list the
harness runs on every build:

    //cheese:cake  +  out="cake.tar.gz"  ->  <output_root>/cheese/cake/cake.tar.gz
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict

from remotefile.core.fetch_step import VerifiedFetchStep
from remotefile.core.steps import Step
from remotefile.errors import InvalidFetchSpecError
from remotefile.models.fetch import ArtifactKind, Digest, FetchSpec
from remotefile.models.target import BuildTarget
from remotefile.recorders import ArtifactRecorder
from remotefile.transports.base import FetchCapability


def default_output_name(uri: str) -> str:
    """Last path segment of *uri*, used when a rule does not set ``out``."""
    name = PurePosixPath(unquote(urlparse(uri).path)).name
    if not name:
        raise InvalidFetchSpecError(
            f"Cannot derive an output name from {uri!r}; set 'out' explicitly"
        )
    return name


class RemoteFileRule(BaseModel):
    """A declared remote file: where it comes from and what it must hash to."""

    model_config = ConfigDict(frozen=True)

    target: BuildTarget
    url: str
    digest: Digest
    out: str = ""
    kind: ArtifactKind = ArtifactKind.DATA

    @classmethod
    def declare(
        cls,
        target: str,
        *,
        url: str,
        digest: str | Digest,
        out: str = "",
        kind: ArtifactKind = ArtifactKind.DATA,
    ) -> RemoteFileRule:
        """Build a rule from the string forms used in build files."""
        if isinstance(digest, str):
            digest = Digest.parse(digest)
        return cls(
            target=BuildTarget.parse(target),
            url=url,
            digest=digest,
            out=out,
            kind=kind,
        )

    def fetch_spec(self) -> FetchSpec:
        """Derive the immutable FetchSpec for this rule."""
        output_name = self.out or default_output_name(self.url)
        try:
            return FetchSpec(
                uri=self.url,
                expected_digest=self.digest,
                destination_dir=self.target.base_path / self.target.short_name,
                output_name=output_name,
                kind=self.kind,
            )
        except ValueError as exc:
            raise InvalidFetchSpecError(
                f"Invalid remote_file {self.target}: {exc}"
            ) from exc

    def path_to_output(self) -> PurePosixPath:
        """Output path relative to the build output root."""
        return self.fetch_spec().destination_path

    def get_build_steps(
        self,
        *,
        transport: FetchCapability,
        recorder: ArtifactRecorder,
        output_root: Path,
        staging_dir_name: str = ".staging",
    ) -> list[Step]:
        """Expand the rule into the ordered steps the harness executes."""
        return [
            VerifiedFetchStep(
                self.fetch_spec(),
                transport=transport,
                recorder=recorder,
                output_root=output_root,
                staging_dir_name=staging_dir_name,
            )
        ]
