from __future__ import annotations

from typing import Literal

from autorelease.core.result import Err, Ok, Result
from autorelease.output.console import ConsoleProtocol, Style
from autorelease.services.release.errors import ReleaseError
from autorelease.services.release.hosting import HostingClient

MergeConfirmation = Literal["merged", "merged_despite_error"]


class MergeExecutor:
    """Squash-merge a PR and delete its branch.

    ``gh pr merge`` can report failure after GitHub already applied the
    merge, so a reported failure is only final once a fresh read of the PR
    shows it is not MERGED.
    """

    def __init__(self, *, host: HostingClient, console: ConsoleProtocol) -> None:
        self._host = host
        self._console = console

    def merge(self, pr_number: int) -> Result[MergeConfirmation, ReleaseError]:
        self._console.print(f"Merging pull request #{pr_number}...", Style.WARNING)
        merged = self._host.merge_pr(pr_number)
        if isinstance(merged, Ok):
            self._console.success(f"pull request #{pr_number} merged and branch deleted")
            return Ok("merged")

        self._console.debug(f"merge command failed: {merged.error.message}")
        self._console.print(
            "Merge command failed, checking if PR was actually merged...", Style.WARNING
        )
        view = self._host.view_pr(pr_number)
        if isinstance(view, Ok) and view.value.is_merged:
            self._console.success("PR was merged despite the command error")
            return Ok("merged_despite_error")

        state = view.value.state if isinstance(view, Ok) else "unknown"
        return Err(
            ReleaseError(
                kind="merge_failed",
                message=f"failed to merge pull request #{pr_number} (state: {state})",
                hint=merged.error.message,
            )
        )
