from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RunMode(StrEnum):
    FRESH = "fresh"
    RESUME = "resume"  # operator fixed a conflict and staged the result


class ReleaseStep(StrEnum):
    START = "start"
    SQUASHING = "squashing"
    CHERRY_PICKING = "cherry-picking"
    RESUMING = "resuming"
    CONFLICT = "conflict"
    FINALIZING = "finalizing"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """What the operator asked for on the command line."""

    start_commit: str
    tag: str
    mode: RunMode = RunMode.FRESH
    push: bool = True
    message: str | None = None


@dataclass(frozen=True, slots=True)
class CherryPickOutcome:
    """Captured output and exit status of a cherry-pick attempt."""

    output: str
    returncode: int

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class ReleaseSession:
    step: ReleaseStep
    ignore_list: tuple[str, ...] = ()
    outcome: CherryPickOutcome | None = None
