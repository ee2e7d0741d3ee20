from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

import typer

from autorelease.core.config import ConfigError, ReleaseConfig, apply_env, load_config
from autorelease.core.errors import ErrorCode
from autorelease.core.result import Err, Result
from autorelease.git.repository import GitClient, Repository
from autorelease.output.console import ConsoleProtocol, RichConsole
from autorelease.platform.clock import Clock, SystemClock
from autorelease.services.release.gh import GhHostingClient
from autorelease.services.release.hosting import HostingClient


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ReleaseConfig
    console: ConsoleProtocol
    git: GitClient
    host: HostingClient
    clock: Clock


@dataclass(frozen=True, slots=True)
class Overrides:
    """Values given on the command line; None keeps the configured value."""

    repo: str | None = None
    base: str | None = None
    poll_interval: float | None = None
    max_wait: float | None = None
    debug: bool = False

    def apply(self, config: ReleaseConfig) -> Result[ReleaseConfig, ConfigError]:
        updated = config
        if self.repo:
            updated = replace(updated, repo_slug=self.repo)
        if self.base:
            updated = replace(updated, base_branch=self.base)
        if self.poll_interval is not None:
            updated = replace(updated, poll_interval=self.poll_interval)
        if self.max_wait is not None:
            updated = replace(updated, max_wait=self.max_wait)
        if self.debug:
            updated = replace(updated, debug=True)
        return updated.validate()


def resolve_config(root: Path, overrides: Overrides) -> Result[ReleaseConfig, ConfigError]:
    loaded = load_config(root)
    if isinstance(loaded, Err):
        return loaded
    with_env = apply_env(loaded.value)
    if isinstance(with_env, Err):
        return with_env
    return overrides.apply(with_env.value)


def build_context(overrides: Overrides | None = None, *, root: Path | None = None) -> CLIContext:
    repo_root = (root or Path.cwd()).resolve()
    config_result = resolve_config(repo_root, overrides or Overrides())
    if isinstance(config_result, Err):
        error = config_result.error
        where = f" ({error.path})" if error.path is not None else ""
        typer.echo(f"error: {error.message}{where}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config = config_result.value
    console = RichConsole(debug=config.debug)
    trace = console.debug if config.debug else None
    clock = SystemClock()

    return CLIContext(
        config=config,
        console=console,
        git=Repository(repo_root, trace=trace),
        host=GhHostingClient(
            repo_root=repo_root,
            slug=config.repo_slug,
            trace=trace,
            clock=clock,
        ),
        clock=clock,
    )
