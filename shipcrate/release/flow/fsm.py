from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from shipcrate.core.result import Err, Ok, Result

S = TypeVar("S")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFailure[S, E]:
    """A handler failed; `session` is the state it was handed."""

    session: S
    error: E


@dataclass(frozen=True, slots=True)
class UnknownStep:
    step: str

    @property
    def message(self) -> str:
        return f"no handler for release step: {self.step}"


type StepOutcome[S] = StepAdvance[S] | StepFinish[S]
type StepHandler[S, E] = Callable[[S], Result[StepOutcome[S], E]]
type OnTransition[S] = Callable[[S], None]
type GetStep[S] = Callable[[S], str]


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def finish[S](session: S) -> StepFinish[S]:
    return StepFinish(session=session)


def run_state_machine[S, E](
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S, E]],
    on_transition: OnTransition[S] | None = None,
) -> Result[S, StepFailure[S, E | UnknownStep]]:
    """Drive handlers until one finishes or fails.

    Each handler receives the current session and returns the next one. The
    session handed to a failing handler is returned with the error, so the
    caller knows exactly which side effects had already happened.
    """
    current = initial_state

    while True:
        if on_transition is not None:
            on_transition(current)

        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(StepFailure(session=current, error=UnknownStep(step=step)))

        outcome = handler(current)
        if isinstance(outcome, Err):
            return Err(StepFailure(session=current, error=outcome.error))

        if isinstance(outcome.value, StepFinish):
            return Ok(outcome.value.session)

        current = outcome.value.session
