from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from deliver.core.result import Err, Ok, Result
from deliver.release.errors import ReleaseError

S = TypeVar("S")
K = TypeVar("K")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
OnAdvance = Callable[[S], None]


FINISH = StepFinish()


def advance(session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: Callable[[S], K],
    handlers: Mapping[K, StepHandler[S]],
    on_advance: OnAdvance[S] | None = None,
) -> Result[None, ReleaseError]:
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"unknown release step: {step}",
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(None)

        current = outcome.value.session
        if on_advance is not None:
            on_advance(current)
