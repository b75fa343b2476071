"""``remotefile fetch`` — declare and run a single remote_file rule.

Runs the rule's build steps through the fail-fast runner with the default
scheme-routing transport, then prints where the artifact was published.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from remotefile.config import settings
from remotefile.core.artifact_store import ContentAddressedStore
from remotefile.core.rule import RemoteFileRule
from remotefile.core.steps import run_steps
from remotefile.errors import InvalidFetchSpecError
from remotefile.models.fetch import ArtifactKind
from remotefile.recorders import CachingArtifactRecorder, InMemoryArtifactRecorder
from remotefile.transports.routing import default_transport

console = Console()


def fetch_cmd(
    url: str = typer.Argument(..., help="Source URI (http, https or file)."),
    digest: str = typer.Option(
        ...,
        "--digest",
        "-d",
        help="Expected digest as '<algorithm>:<hex>' (sha1, sha256, sha512).",
    ),
    target: str = typer.Option(
        ...,
        "--target",
        "-t",
        help="Build target that owns the file, e.g. //third_party:junit.",
    ),
    out: str = typer.Option(
        "",
        "--out",
        "-o",
        help="Output file name (defaults to the last URL path segment).",
    ),
    executable: bool = typer.Option(
        False,
        "--executable",
        help="Mark the published file executable.",
    ),
    output_root: Path = typer.Option(
        None,
        "--output-root",
        help="Build output root (defaults to REMOTEFILE_OUTPUT_ROOT).",
    ),
    cache: bool = typer.Option(
        False,
        "--cache/--no-cache",
        help="Copy the published file into the artifact cache.",
    ),
    cache_dir: Path = typer.Option(
        None,
        "--cache-dir",
        help="Artifact cache directory (defaults to REMOTEFILE_ARTIFACT_CACHE_PATH).",
    ),
) -> None:
    """Fetch URL, verify it against DIGEST and publish it under the target."""
    root = output_root or settings.output_root
    kind = ArtifactKind.EXECUTABLE if executable else ArtifactKind.DATA

    try:
        rule = RemoteFileRule.declare(target, url=url, digest=digest, out=out, kind=kind)
        rule.fetch_spec()
    except InvalidFetchSpecError as exc:
        console.print(f"[red]Invalid remote_file:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    recorder: CachingArtifactRecorder | InMemoryArtifactRecorder
    if cache:
        recorder = CachingArtifactRecorder(
            ContentAddressedStore(cache_dir or settings.artifact_cache_path), root
        )
    else:
        recorder = InMemoryArtifactRecorder()

    transport = default_transport(settings)
    try:
        steps = rule.get_build_steps(
            transport=transport,
            recorder=recorder,
            output_root=root,
            staging_dir_name=settings.staging_dir_name,
        )
        result = run_steps(steps)
    finally:
        transport.close()

    if not result.is_success:
        kind_label = result.error_kind.value if result.error_kind else "error"
        console.print(
            Panel(
                f"[bold red]{kind_label}[/bold red]\n\n{result.message}",
                title=f"[bold]{rule.target}[/bold]",
                border_style="red",
                padding=(1, 2),
            )
        )
        raise typer.Exit(code=result.exit_code)

    lines = [
        "[bold green]Verified and published.[/bold green]",
        "",
        f"[bold]Source:[/bold]  {url}",
        f"[bold]Digest:[/bold]  {rule.digest}",
        f"[bold]Output:[/bold]  {root / rule.path_to_output()}",
        f"[bold]Kind:[/bold]    {kind.value}",
    ]
    if isinstance(recorder, CachingArtifactRecorder):
        for ref in recorder.refs:
            lines.append(f"[bold]Cached:[/bold]  {ref.content_address}")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{rule.target}[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
