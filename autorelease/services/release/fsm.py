"""Generic step runner for the release workflow.

Each handler receives the current run state and either advances to a new
state (whose ``stage`` picks the next handler), finishes, or fails. The
runner owns the loop so handlers stay small and individually testable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from autorelease.core.result import Err, Ok, Result
from autorelease.services.release.errors import ReleaseError
from autorelease.services.release.model import Stage

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    state: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


@dataclass(frozen=True, slots=True)
class StepFailure[S]:
    """The state a handler was given when it failed, and why."""

    state: S
    error: ReleaseError


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
GetStage = Callable[[S], Stage]
OnTransition = Callable[[S, S], None]


FINISH = StepFinish()


def advance[S](state: S) -> StepAdvance[S]:
    return StepAdvance(state=state)


def run_state_machine(
    *,
    initial_state: S,
    get_stage: GetStage[S],
    handlers: Mapping[Stage, StepHandler[S]],
    on_transition: OnTransition[S] | None = None,
) -> Result[S, StepFailure[S]]:
    """Run handlers until one finishes or fails.

    Returns:
        Ok(state) with the state handed to the finishing handler, or
        Err(StepFailure) with the state handed to the failing one.
    """
    current = initial_state

    while True:
        stage = get_stage(current)
        handler = handlers.get(stage)
        if handler is None:
            return Err(
                StepFailure(
                    state=current,
                    error=ReleaseError(
                        kind="invalid_input",
                        message=f"no handler for workflow stage: {stage.label}",
                    ),
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return Err(StepFailure(state=current, error=outcome.error))

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        previous, current = current, outcome.value.state
        if on_transition is not None:
            on_transition(previous, current)
