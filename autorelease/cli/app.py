from __future__ import annotations

import os

import typer

from autorelease import __version__
from autorelease.cli.commands.run_cmd import execute, run
from autorelease.cli.commands.status_cmd import status
from autorelease.cli.context import build_context


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


# Commands
app.command()(run)
app.command()(status)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    debug: bool = typer.Option(False, "--debug", help="Trace every git and gh call."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if debug:
        os.environ["AUTO_RELEASE_DEBUG"] = "1"

    if ctx.invoked_subcommand is not None:
        return

    # Bare invocation releases straight away, like `run --yes`.
    result = execute(build_context())
    raise typer.Exit(code=result.exit_code)


def main() -> None:
    app()
