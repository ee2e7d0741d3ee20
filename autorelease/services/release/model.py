"""Values exchanged between the hosting client and the workflow steps."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Literal

PrState = Literal["OPEN", "MERGED", "CLOSED"]
Mergeable = Literal["MERGEABLE", "CONFLICTING", "UNKNOWN"]
CheckBucket = Literal["pending", "pass", "fail", "cancel", "skipping"]
CiVerdict = Literal["pass", "fail", "pending"]

_FAILING_BUCKETS = frozenset({"fail", "cancel"})


def pull_request_url(slug: str, number: int) -> str:
    return f"https://github.com/{slug}/pull/{number}"


def normalize_state(value: str | None) -> PrState | None:
    match (value or "").upper():
        case "OPEN":
            return "OPEN"
        case "MERGED":
            return "MERGED"
        case "CLOSED":
            return "CLOSED"
        case _:
            return None


def normalize_mergeable(value: str | None) -> Mergeable:
    match (value or "").upper():
        case "MERGEABLE":
            return "MERGEABLE"
        case "CONFLICTING":
            return "CONFLICTING"
        case _:
            return "UNKNOWN"


def normalize_bucket(value: str | None) -> CheckBucket:
    """Map a reported bucket to a known one; anything unrecognised counts as pending."""
    match (value or "").lower():
        case "pass":
            return "pass"
        case "fail":
            return "fail"
        case "cancel":
            return "cancel"
        case "skipping":
            return "skipping"
        case _:
            return "pending"


@dataclass(frozen=True, slots=True)
class PullRequestRef:
    """Entry from a PR listing."""

    number: int
    url: str
    title: str


@dataclass(frozen=True, slots=True)
class PullRequest:
    """Detail view of a PR at one point in time.

    Remote state changes out-of-band; callers re-fetch instead of caching.
    """

    number: int
    state: PrState
    mergeable: Mergeable
    merge_state_status: str
    url: str | None = None
    title: str | None = None
    head_sha: str | None = None

    @property
    def is_merged(self) -> bool:
        return self.state == "MERGED"

    @property
    def is_closed(self) -> bool:
        return self.state == "CLOSED"

    @property
    def is_mergeable(self) -> bool:
        return self.mergeable == "MERGEABLE"

    @property
    def has_conflicts(self) -> bool:
        return self.mergeable == "CONFLICTING" or self.merge_state_status == "DIRTY"


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    bucket: CheckBucket

    @property
    def is_failing(self) -> bool:
        return self.bucket in _FAILING_BUCKETS


def aggregate_checks(checks: Iterable[CheckResult]) -> CiVerdict:
    """Combine check buckets into one CI verdict.

    Any fail/cancel wins; otherwise any pending keeps the verdict pending;
    otherwise (including an empty set) the verdict is pass.
    """
    buckets = {c.bucket for c in checks}
    if buckets & _FAILING_BUCKETS:
        return "fail"
    if "pending" in buckets:
        return "pending"
    return "pass"


@dataclass(frozen=True, slots=True)
class CheckSummary:
    passed: tuple[CheckResult, ...]
    pending: tuple[CheckResult, ...]
    failed: tuple[CheckResult, ...]
    skipped: tuple[CheckResult, ...]

    @classmethod
    def of(cls, checks: Iterable[CheckResult]) -> CheckSummary:
        items = tuple(checks)
        return cls(
            passed=tuple(c for c in items if c.bucket == "pass"),
            pending=tuple(c for c in items if c.bucket == "pending"),
            failed=tuple(c for c in items if c.is_failing),
            skipped=tuple(c for c in items if c.bucket == "skipping"),
        )

    def describe(self) -> str:
        return (
            f"Checks status: {len(self.passed)} passed, {len(self.pending)} pending, "
            f"{len(self.failed)} failed, {len(self.skipped)} skipped"
        )


class Stage(Enum):
    """Workflow states, in the order the orchestrator visits them."""

    INIT = "init"
    PREREQ_CHECK = "prereq_check"
    PUSH = "push"
    RESOLVE_PR = "resolve_pr"
    AWAIT_CHECKS = "await_checks"
    RESOLVE_CONFLICT = "resolve_conflict"
    MERGE = "merge"
    RELEASE = "release"
    DONE = "done"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class WorkflowOutcome(IntEnum):
    """Terminal outcome of a run; the value is the process exit code."""

    RELEASED = 0
    PREREQUISITE_FAILED = 2
    PUSH_FAILED = 3
    PR_RESOLUTION_FAILED = 4
    CHECKS_FAILED = 5
    TIMEOUT = 6
    CONFLICT_UNRESOLVED = 7
    MERGE_FAILED = 8
    RELEASE_FAILED = 9

    @property
    def is_success(self) -> bool:
        return self == WorkflowOutcome.RELEASED
