"""End-to-end release workflow.

    INIT -> PREREQ_CHECK -> PUSH -> RESOLVE_PR -> AWAIT_CHECKS
         -> [RESOLVE_CONFLICT] -> MERGE -> RELEASE -> DONE

Any stage may fail; the failure kind decides the ``WorkflowOutcome`` and so
the exit code. Nothing is pushed or created before PREREQ_CHECK passes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from autorelease.core.config import ReleaseConfig
from autorelease.core.result import Err, Ok, Result
from autorelease.git.repository import GitClient
from autorelease.output.console import ConsoleProtocol, Style
from autorelease.platform.clock import Clock
from autorelease.services.release.checks import CheckAggregator, WaitVerdict
from autorelease.services.release.conflicts import ConflictResolver
from autorelease.services.release.errors import ReleaseError, ReleaseErrorKind
from autorelease.services.release.fsm import (
    FINISH,
    StepHandler,
    StepOutcome,
    advance,
    run_state_machine,
)
from autorelease.services.release.hosting import HostingClient
from autorelease.services.release.merge import MergeExecutor
from autorelease.services.release.model import Stage, WorkflowOutcome
from autorelease.services.release.pr_resolver import (
    PullRequestDraft,
    PullRequestResolver,
    ResolvedPullRequest,
)
from autorelease.services.release.publish import PublishedRelease, ReleasePublisher
from autorelease.services.release.version import VersionSource, tag_for

_OUTCOME_BY_KIND: dict[ReleaseErrorKind, WorkflowOutcome] = {
    "prerequisite_failed": WorkflowOutcome.PREREQUISITE_FAILED,
    "invalid_input": WorkflowOutcome.PREREQUISITE_FAILED,
    "push_failed": WorkflowOutcome.PUSH_FAILED,
    "pr_resolution_failed": WorkflowOutcome.PR_RESOLUTION_FAILED,
    "checks_failed": WorkflowOutcome.CHECKS_FAILED,
    "checks_timeout": WorkflowOutcome.TIMEOUT,
    "conflict_unresolved": WorkflowOutcome.CONFLICT_UNRESOLVED,
    "merge_failed": WorkflowOutcome.MERGE_FAILED,
    "release_publish_failed": WorkflowOutcome.RELEASE_FAILED,
}

_MERGE_REMEDIES = (
    "Common solutions:\n"
    "  1. Resolve merge conflicts by rebasing your branch on the base branch\n"
    "  2. Ensure all required status checks have passed\n"
    "  3. Check if the PR has been manually merged already"
)


@dataclass(frozen=True, slots=True)
class RunState:
    stage: Stage
    config: ReleaseConfig
    branch: str | None = None
    version: str | None = None
    commit_message: str = ""
    pr: ResolvedPullRequest | None = None
    release: PublishedRelease | None = None

    @property
    def pr_url(self) -> str | None:
        return self.pr.url if self.pr is not None else None

    def at(self, stage: Stage) -> RunState:
        return replace(self, stage=stage)


@dataclass(frozen=True, slots=True)
class WorkflowResult:
    outcome: WorkflowOutcome
    stage: Stage
    error: ReleaseError | None = None
    pr_url: str | None = None
    tag: str | None = None
    release_url: str | None = None

    @property
    def exit_code(self) -> int:
        return int(self.outcome)


def outcome_for(error: ReleaseError) -> WorkflowOutcome:
    return _OUTCOME_BY_KIND[error.kind]


class Orchestrator:
    """Owns prerequisite checks, sequencing and the fatal-exit decision."""

    def __init__(
        self,
        *,
        config: ReleaseConfig,
        git: GitClient,
        host: HostingClient,
        console: ConsoleProtocol,
        clock: Clock,
        versions: VersionSource | None = None,
    ) -> None:
        self._config = config
        self._git = git
        self._host = host
        self._console = console
        self._clock = clock
        self._versions = versions or VersionSource(config.manifest_path)
        self._handlers: dict[Stage, StepHandler[RunState]] = {
            Stage.INIT: self._init,
            Stage.PREREQ_CHECK: self._prereq_check,
            Stage.PUSH: self._push,
            Stage.RESOLVE_PR: self._resolve_pr,
            Stage.AWAIT_CHECKS: self._await_checks,
            Stage.RESOLVE_CONFLICT: self._resolve_conflict,
            Stage.MERGE: self._merge,
            Stage.RELEASE: self._release,
            Stage.DONE: self._done,
        }

    def run(self) -> WorkflowResult:
        result = run_state_machine(
            initial_state=RunState(stage=Stage.INIT, config=self._config),
            get_stage=lambda s: s.stage,
            handlers=self._handlers,
            on_transition=self._on_transition,
        )

        if isinstance(result, Err):
            state = result.error.state
            error = result.error.error.with_pr_url(state.pr_url)
            return WorkflowResult(
                outcome=outcome_for(error),
                stage=state.stage,
                error=error,
                pr_url=state.pr_url,
                tag=tag_for(state.version) if state.version else None,
            )

        final = result.value
        tag = final.release.tag if final.release is not None else None
        return WorkflowResult(
            outcome=WorkflowOutcome.RELEASED,
            stage=Stage.DONE,
            pr_url=final.pr_url,
            tag=tag,
            release_url=final.config.release_url(tag) if tag and final.config.repo_slug else None,
        )

    def _on_transition(self, previous: RunState, current: RunState) -> None:
        self._console.debug(f"stage: {previous.stage.label} -> {current.stage.label}")

    # Stages

    def _init(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        self._console.header("Starting auto-release process")
        return Ok(advance(state.at(Stage.PREREQ_CHECK)))

    def _prereq_check(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        self._console.print("Checking prerequisites...", Style.INFO)

        ready = self._host.ensure_ready()
        if isinstance(ready, Err):
            hint = (
                "Install GitHub CLI: https://cli.github.com/"
                if ready.error.operation == "which"
                else "Run: gh auth login"
            )
            return _prerequisite(ready.error.message, hint)

        changed = self._git.changed_paths()
        if isinstance(changed, Err):
            return _prerequisite("could not read working tree status", changed.error.message)
        if changed.value:
            return _prerequisite(
                "you have uncommitted changes",
                "Commit or stash them first: " + ", ".join(changed.value[:5]),
            )

        branch = self._git.current_branch()
        if isinstance(branch, Err):
            return _prerequisite("could not determine the current branch", branch.error.message)

        version = self._versions.read()
        if isinstance(version, Err):
            return version

        commit = self._git.last_commit_message()
        commit_message = commit.value if isinstance(commit, Ok) else ""

        config = state.config
        self._console.print(f"Current branch: {branch.value}", Style.INFO)
        self._console.print(f"Package version: {version.value}", Style.INFO)
        self._console.print(f"Latest commit: {commit_message.splitlines()[0] if commit_message else '-'}", Style.INFO)

        if branch.value == config.base_branch:
            return _prerequisite(
                f"you are on the {config.base_branch} branch",
                "Create a feature branch first.",
            )

        if config.repo_slug is None:
            slug = self._host.repo_slug()
            if isinstance(slug, Err):
                return _prerequisite("could not determine the repository", slug.error.message)
            config = config.with_slug(slug.value)
            self._console.debug(f"repository: {slug.value}")

        return Ok(
            advance(
                replace(
                    state,
                    stage=Stage.PUSH,
                    config=config,
                    branch=branch.value,
                    version=version.value,
                    commit_message=commit_message,
                )
            )
        )

    def _push(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        branch = _required(state.branch)
        remote = state.config.remote
        self._console.print(f"Pushing {branch} to {remote}...", Style.WARNING)
        pushed = self._git.push(remote, branch)
        if isinstance(pushed, Err):
            return Err(
                ReleaseError(
                    kind="push_failed",
                    message=f"could not push {branch} to {remote}",
                    hint=pushed.error.message,
                )
            )
        return Ok(advance(state.at(Stage.RESOLVE_PR)))

    def _resolve_pr(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        self._console.print("Getting or creating pull request...", Style.WARNING)
        resolver = PullRequestResolver(
            host=self._host,
            console=self._console,
            repo_slug=_required(state.config.repo_slug),
            draft=PullRequestDraft.for_release(
                version=_required(state.version), commit_message=state.commit_message
            ),
        )
        resolved = resolver.resolve(_required(state.branch), state.config.base_branch)
        if isinstance(resolved, Err):
            return resolved

        pr = resolved.value
        self._console.print(f"PR #{pr.number}: {pr.url}", Style.INFO)
        return Ok(advance(replace(state, stage=Stage.AWAIT_CHECKS, pr=pr)))

    def _await_checks(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        pr = _required(state.pr)
        aggregator = CheckAggregator(host=self._host, clock=self._clock, console=self._console)
        outcome = aggregator.await_checks(
            pr.number,
            max_wait=state.config.max_wait,
            poll_interval=state.config.poll_interval,
        )
        if not outcome.passed:
            timed_out = outcome.verdict is WaitVerdict.TIMED_OUT
            return Err(
                ReleaseError(
                    kind="checks_timeout" if timed_out else "checks_failed",
                    message=(
                        f"CI checks timed out: {outcome.reason}"
                        if timed_out
                        else f"CI checks failed: {outcome.reason}"
                    ),
                    hint=f"PR will not be merged automatically. Review it manually: {pr.url}",
                )
            )

        self._console.print("Checking if PR is mergeable...", Style.WARNING)
        view = self._host.view_pr(pr.number)
        if isinstance(view, Err):
            self._console.warning(
                f"could not read PR status, proceeding with merge attempt: {view.error.message}"
            )
            return Ok(advance(state.at(Stage.MERGE)))

        current = view.value
        self._console.debug(
            f"PR mergeable: {current.mergeable}, merge state: {current.merge_state_status}"
        )
        if current.is_merged:
            return Ok(advance(state.at(Stage.RELEASE)))
        if current.has_conflicts:
            self._console.error("pull request has merge conflicts")
            return Ok(advance(state.at(Stage.RESOLVE_CONFLICT)))
        return Ok(advance(state.at(Stage.MERGE)))

    def _resolve_conflict(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        pr = _required(state.pr)
        manual = (
            f"Resolve conflicts manually: {pr.url}\n"
            "After resolving conflicts, run auto-release again."
        )
        resolver = ConflictResolver(git=self._git, console=self._console, remote=state.config.remote)
        resolved = resolver.attempt_resolution(_required(state.branch), state.config.base_branch)
        if isinstance(resolved, Err):
            return Err(
                ReleaseError(
                    kind="conflict_unresolved",
                    message=f"automatic conflict resolution failed: {resolved.error.message}",
                    hint=f"{resolved.error.hint}\n{manual}" if resolved.error.hint else manual,
                )
            )

        self._console.print(
            "Conflicts may have been resolved. Waiting for GitHub to update...", Style.SUCCESS
        )
        self._clock.sleep(state.config.settle_delay)

        view = self._host.view_pr(pr.number)
        if isinstance(view, Err):
            self._console.warning("could not verify conflict resolution, proceeding with merge attempt")
        elif view.value.has_conflicts:
            return Err(
                ReleaseError(
                    kind="conflict_unresolved",
                    message="conflicts still exist after automatic resolution attempt",
                    hint=manual,
                )
            )
        elif view.value.is_mergeable:
            self._console.success("conflicts resolved, proceeding with merge")
        else:
            self._console.warning(
                f"mergeable status is {view.value.mergeable}, proceeding with merge attempt"
            )
        return Ok(advance(state.at(Stage.MERGE)))

    def _merge(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        pr = _required(state.pr)
        merged = MergeExecutor(host=self._host, console=self._console).merge(pr.number)
        if isinstance(merged, Err):
            detail = merged.error.hint
            return Err(
                replace(
                    merged.error,
                    hint=(f"{detail}\n" if detail else "")
                    + f"Check the PR manually: {pr.url}\n{_MERGE_REMEDIES}",
                )
            )
        return Ok(advance(state.at(Stage.RELEASE)))

    def _release(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        config = state.config
        publisher = ReleasePublisher(
            git=self._git,
            host=self._host,
            console=self._console,
            remote=config.remote,
            base_branch=config.base_branch,
            changelog=config.changelog_path,
            scratch_dir=config.scratch_path,
        )
        published = publisher.publish(_required(state.version))
        if isinstance(published, Err):
            return published
        return Ok(advance(replace(state, stage=Stage.DONE, release=published.value)))

    def _done(self, state: RunState) -> Result[StepOutcome[RunState], ReleaseError]:
        return Ok(FINISH)


def _prerequisite(message: str, hint: str | None) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="prerequisite_failed", message=message, hint=hint))


def _required[T](value: T | None) -> T:
    if value is None:
        raise AssertionError("workflow state missing a value set by an earlier stage")
    return value


def report(result: WorkflowResult, console: ConsoleProtocol) -> None:
    """Print the terminal diagnostic for a finished run."""
    if result.outcome.is_success:
        console.success("auto-release process completed successfully")
        if result.release_url:
            console.print(f"View release: {result.release_url}", Style.INFO)
        return

    error = result.error
    message = error.message if error is not None else result.outcome.name.lower()
    console.error(f"{result.stage.label} failed: {message}")
    if error is not None and error.hint:
        for line in error.hint.splitlines():
            console.print(line, Style.WARNING)
    if result.pr_url and (error is None or result.pr_url not in (error.hint or "")):
        console.print(f"Pull request: {result.pr_url}", Style.INFO)
