from __future__ import annotations

from typing import Literal

from autorelease.core.result import Err, Ok, Result
from autorelease.git.repository import GitClient
from autorelease.output.console import ConsoleProtocol, Style
from autorelease.services.release.errors import ReleaseError

Strategy = Literal["rebase", "merge"]


class ConflictResolver:
    """One best-effort attempt to make a conflicting branch mergeable.

    Rebase onto the remote base, fall back to merging it in, then push with
    ``--force-with-lease`` so a concurrent push to the branch is never
    clobbered. There is no second attempt; callers re-read the PR after a
    settle delay before trusting the result.
    """

    def __init__(self, *, git: GitClient, console: ConsoleProtocol, remote: str) -> None:
        self._git = git
        self._console = console
        self._remote = remote

    def attempt_resolution(self, branch: str, base: str) -> Result[Strategy, ReleaseError]:
        self._console.print("Attempting to resolve conflicts by updating branch...", Style.WARNING)
        upstream = f"{self._remote}/{base}"

        fetched = self._git.fetch(self._remote)
        if isinstance(fetched, Err):
            return Err(
                ReleaseError(
                    kind="conflict_unresolved",
                    message=f"could not fetch {self._remote}",
                    hint=fetched.error.message,
                )
            )

        strategy: Strategy = "rebase"
        self._console.print(f"Attempting rebase on {upstream}...", Style.INFO)
        rebased = self._git.rebase(upstream)
        if isinstance(rebased, Err):
            self._console.warning(f"rebase failed, trying merge instead: {rebased.error.message}")
            strategy = "merge"
            merged = self._git.merge(upstream)
            if isinstance(merged, Err):
                return Err(
                    ReleaseError(
                        kind="conflict_unresolved",
                        message="both rebase and merge failed; manual intervention required",
                        hint=merged.error.message,
                    )
                )

        self._console.print("Pushing updated branch...", Style.INFO)
        pushed = self._git.force_push_with_lease(self._remote, branch)
        if isinstance(pushed, Err):
            return Err(
                ReleaseError(
                    kind="conflict_unresolved",
                    message=f"updated branch could not be pushed (remote {branch} moved?)",
                    hint=pushed.error.message,
                )
            )

        self._console.success(f"branch updated via {strategy}")
        return Ok(strategy)
