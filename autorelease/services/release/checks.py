"""Wait for a pull request's CI to reach a verdict.

Each poll cycle re-reads the PR, then its checks. Read failures never end
the wait on their own: they fall back to the commit-status API, then to the
PR's mergeable flag, and otherwise just cost one poll interval. Only an
explicit failure, a closed PR, or the time budget ends the wait negatively.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from autorelease.core.result import Err, Ok, Result
from autorelease.output.console import ConsoleProtocol, Style
from autorelease.platform.clock import Clock
from autorelease.services.release.hosting import HostError, HostingClient
from autorelease.services.release.model import (
    CheckResult,
    CheckSummary,
    PullRequest,
    aggregate_checks,
)


class WaitVerdict(Enum):
    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class ChecksOutcome:
    verdict: WaitVerdict
    reason: str
    cycles: int
    failed_checks: tuple[CheckResult, ...] = ()

    @property
    def passed(self) -> bool:
        return self.verdict is WaitVerdict.PASSED


class _Continue:
    """Sentinel: nothing conclusive this cycle, poll again."""


_CONTINUE = _Continue()


class CheckAggregator:
    def __init__(self, *, host: HostingClient, clock: Clock, console: ConsoleProtocol) -> None:
        self._host = host
        self._clock = clock
        self._console = console

    def await_checks(
        self, pr_number: int, *, max_wait: float, poll_interval: float
    ) -> ChecksOutcome:
        self._console.print(
            f"Waiting for CI checks to complete for PR #{pr_number}...", Style.WARNING
        )
        start = self._clock.monotonic()
        cycles = 0

        while (elapsed := self._clock.monotonic() - start) < max_wait:
            cycles += 1
            self._console.debug(f"check attempt #{cycles} ({elapsed:.0f}s elapsed)")

            decided = self._cycle(pr_number, cycles)
            if isinstance(decided, ChecksOutcome):
                return decided

            remaining = max_wait - (self._clock.monotonic() - start)
            if remaining <= 0:
                break
            self._clock.sleep(min(poll_interval, remaining))

        return ChecksOutcome(
            verdict=WaitVerdict.TIMED_OUT,
            reason=f"checks did not complete within {max_wait:.0f}s",
            cycles=cycles,
        )

    def _cycle(self, pr_number: int, cycle: int) -> ChecksOutcome | _Continue:
        view = self._host.view_pr(pr_number)
        if isinstance(view, Err):
            self._console.warning(
                f"failed to get PR status for #{pr_number}, retrying: {view.error.message}"
            )
            return _CONTINUE

        pr = view.value
        self._console.debug(f"PR state: {pr.state}, mergeable: {pr.mergeable}")
        if pr.is_merged:
            self._console.success("PR is already merged")
            return ChecksOutcome(WaitVerdict.PASSED, "pull request already merged", cycle)
        if pr.is_closed:
            self._console.error("PR is closed. Cannot proceed.")
            return ChecksOutcome(WaitVerdict.FAILED, "pull request was closed", cycle)

        checks = self._fetch_checks(pr)
        if isinstance(checks, Err):
            return self._mergeable_heuristic(pr, cycle)
        return self._evaluate(pr, checks.value, cycle)

    def _fetch_checks(self, pr: PullRequest) -> Result[list[CheckResult], HostError]:
        checks = self._host.pr_checks(pr.number)
        if isinstance(checks, Ok):
            return checks

        self._console.debug(f"pr checks failed ({checks.error.message}), trying commit status")
        if pr.head_sha is None:
            return checks
        status = self._host.commit_status(pr.head_sha)
        if isinstance(status, Err):
            self._console.debug(f"commit status failed: {status.error.message}")
        return status

    def _mergeable_heuristic(self, pr: PullRequest, cycle: int) -> ChecksOutcome | _Continue:
        match pr.mergeable:
            case "MERGEABLE":
                self._console.warning("check status unavailable, but PR is mergeable. Proceeding...")
                return ChecksOutcome(WaitVerdict.PASSED, "check status unavailable; PR mergeable", cycle)
            case "CONFLICTING":
                self._console.error("check status unavailable and PR has merge conflicts")
                return ChecksOutcome(
                    WaitVerdict.FAILED, "check status unavailable; PR has merge conflicts", cycle
                )
            case _:
                self._console.print(
                    f"PR mergeable status: {pr.mergeable}. Retrying check status...", Style.WARNING
                )
                return _CONTINUE

    def _evaluate(
        self, pr: PullRequest, checks: list[CheckResult], cycle: int
    ) -> ChecksOutcome | _Continue:
        if not checks:
            if pr.is_mergeable:
                self._console.success("no CI checks configured and PR is mergeable")
                return ChecksOutcome(WaitVerdict.PASSED, "no checks; PR mergeable", cycle)
            self._console.print("No CI checks found and PR not mergeable. Waiting...", Style.WARNING)
            return _CONTINUE

        summary = CheckSummary.of(checks)
        self._console.print(summary.describe(), Style.INFO)

        match aggregate_checks(checks):
            case "fail":
                self._console.error("some checks failed:")
                for check in summary.failed:
                    self._console.print(f"  x {check.name}: {check.bucket}", Style.ERROR)
                return ChecksOutcome(
                    WaitVerdict.FAILED,
                    f"{len(summary.failed)} check(s) failed",
                    cycle,
                    failed_checks=summary.failed,
                )
            case "pass":
                self._console.success("all checks completed")
                return ChecksOutcome(WaitVerdict.PASSED, "all checks passed", cycle)
            case "pending":
                self._console.print(
                    f"Waiting for {len(summary.pending)} pending checks...", Style.WARNING
                )
                for check in summary.pending:
                    self._console.print(f"  ... {check.name}", Style.DIM)
                return _CONTINUE
