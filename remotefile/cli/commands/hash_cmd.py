"""``remotefile hash`` — print the digest to pin a remote_file rule to."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from remotefile.config import settings
from remotefile.core.hasher import hash_file
from remotefile.models.fetch import HashAlgorithm

console = Console()


def hash_cmd(
    path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="File to digest.",
    ),
    algorithm: HashAlgorithm = typer.Option(
        None,
        "--algorithm",
        "-a",
        case_sensitive=False,
        help="Hash algorithm (defaults to REMOTEFILE_DEFAULT_ALGORITHM).",
    ),
) -> None:
    """Print '<algorithm>:<hex>' for PATH, ready to paste into --digest."""
    digest = hash_file(
        path, algorithm or settings.default_algorithm, chunk_size=settings.chunk_size
    )
    # Plain print so the value can be captured by scripts
    console.print(str(digest), highlight=False, soft_wrap=True)
