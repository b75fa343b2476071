"""Main Typer application — imports and registers all CLI commands.

Entry point: ``remotefile`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from remotefile.cli.commands.fetch import fetch_cmd
from remotefile.cli.commands.hash_cmd import hash_cmd
from remotefile.config import settings

app = typer.Typer(
    name="remotefile",
    help="remotefile: verified remote artifact fetch-and-publish for builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG level."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
    )


# Register subcommands
app.command(name="fetch", help="Fetch, verify and publish a remote file.")(fetch_cmd)
app.command(name="hash", help="Print the digest of a local file.")(hash_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
