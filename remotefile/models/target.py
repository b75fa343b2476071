"""Build target names of the form ``//base/path:short_name``."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict

from remotefile.errors import InvalidFetchSpecError

_TARGET_PATTERN = re.compile(r"^//(?P<base>[A-Za-z0-9_.\-/]*):(?P<name>[A-Za-z0-9_.\-+=,@~]+)$")


class BuildTarget(BaseModel):
    """A fully qualified build target."""

    model_config = ConfigDict(frozen=True)

    base_name: str  # e.g. "//cheese"
    short_name: str  # e.g. "cake"

    @classmethod
    def parse(cls, text: str) -> BuildTarget:
        """Parse ``//base/path:name``.  Raises InvalidFetchSpecError."""
        match = _TARGET_PATTERN.match(text.strip())
        if match is None:
            raise InvalidFetchSpecError(
                f"Invalid build target {text!r}: expected '//path/to/pkg:name'"
            )
        base = match.group("base").strip("/")
        if ".." in base.split("/") or match.group("name") in {".", ".."}:
            raise InvalidFetchSpecError(f"Build target {text!r} must not contain '..'")
        return cls(base_name=f"//{base}", short_name=match.group("name"))

    @property
    def base_path(self) -> PurePosixPath:
        """Package directory of the target, relative to the project root."""
        return PurePosixPath(self.base_name.removeprefix("//"))

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.base_name}:{self.short_name}"

    def __str__(self) -> str:
        return self.fully_qualified_name
