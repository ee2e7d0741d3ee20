"""Run command - push, open or reuse the PR, wait for CI, merge and release."""

from __future__ import annotations

import typer

from autorelease.cli.context import CLIContext, Overrides, build_context
from autorelease.core.errors import ErrorCode
from autorelease.output.console import Style
from autorelease.services.release.orchestrator import Orchestrator, WorkflowResult, report
from autorelease.services.release.status import collect_status
from autorelease.services.release.version import VersionSource, tag_for


def _confirm(ctx: CLIContext) -> None:
    status = collect_status(git=ctx.git, versions=VersionSource(ctx.config.manifest_path))
    ctx.console.print(f"Branch:  {status.current_branch}", Style.INFO)
    ctx.console.print(f"Version: {status.current_version}", Style.INFO)
    question = (
        f'Create a PR from "{status.current_branch}" to {ctx.config.base_branch}, '
        f"wait for CI, merge, and create release {tag_for(status.current_version)}?"
    )
    if not typer.confirm(question, default=False):
        typer.echo("aborted", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def execute(ctx: CLIContext) -> WorkflowResult:
    result = Orchestrator(
        config=ctx.config,
        git=ctx.git,
        host=ctx.host,
        console=ctx.console,
        clock=ctx.clock,
    ).run()
    report(result, ctx.console)
    return result


def run(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    base: str | None = typer.Option(None, "--base", help="Base branch to merge into."),
    repo: str | None = typer.Option(None, "--repo", help="Repository as owner/name."),
    poll_interval: float | None = typer.Option(
        None, "--poll-interval", min=0.1, help="Seconds between CI polls."
    ),
    max_wait: float | None = typer.Option(
        None, "--max-wait", min=1.0, help="Give up waiting for CI after this many seconds."
    ),
    debug: bool = typer.Option(False, "--debug", help="Trace every git and gh call."),
) -> None:
    """Release the current branch."""
    ctx = build_context(
        Overrides(
            repo=repo,
            base=base,
            poll_interval=poll_interval,
            max_wait=max_wait,
            debug=debug,
        )
    )
    if not yes:
        _confirm(ctx)

    result = execute(ctx)
    raise typer.Exit(code=result.exit_code)
