"""Status command - what a release from here would publish."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from autorelease.cli.context import build_context
from autorelease.services.release.status import collect_status
from autorelease.services.release.version import VersionSource


def status(
    as_json: bool = typer.Option(False, "--json", help="Print the status as JSON."),
) -> None:
    """Show version, branch, working tree state and latest commit."""
    ctx = build_context()
    current = collect_status(git=ctx.git, versions=VersionSource(ctx.config.manifest_path))

    if as_json:
        typer.echo(json.dumps(current.to_payload(), indent=2))
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="dim")
    table.add_column()
    table.add_row("version", current.current_version)
    table.add_row("branch", current.current_branch)
    table.add_row("uncommitted changes", "yes" if current.has_uncommitted_changes else "no")
    table.add_row("latest commit", current.latest_commit.splitlines()[0] if current.latest_commit else "")
    Console(highlight=False).print(table)
