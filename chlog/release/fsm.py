from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Generic, TypeVar

from chlog.core.result import Err, Ok, Result
from chlog.release.errors import ReleaseError

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish(Generic[S]):
    session: S


StepOutcome = StepAdvance[S] | StepFinish[S]
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
GetStep = Callable[[S], str]


def advance(session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def finish(session: S) -> StepFinish[S]:
    return StepFinish(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
) -> Result[S, ReleaseError]:
    """Run handlers until one finishes; the first error stops the machine.

    Errors come back stamped with the name of the step that produced them.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"unknown release step: {step}",
                    step=step,
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return Err(replace(outcome.error, step=step))

        if isinstance(outcome.value, StepFinish):
            return Ok(outcome.value.session)

        current = outcome.value.session
