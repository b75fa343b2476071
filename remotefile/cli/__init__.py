"""remotefile CLI — Typer-based command-line interface.

Provides the ``remotefile`` command with subcommands for fetching a verified
remote file into a build output tree and for computing the digest to pin it to.

All output uses Rich for formatted terminal display.
"""
