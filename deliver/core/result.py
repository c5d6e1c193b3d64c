"""Result type for explicit error handling.

Every step of a release either succeeds with a value or fails with a typed
error payload. Functions return ``Ok``/``Err`` instead of raising, so the
orchestrator can decide per step whether a failure is fatal, recoverable
(cherry-pick conflict) or merely informative.

Usage:
    match repo.resolve_commit(start_commit):
        case Ok(sha):
            console.print(f"squashing from {sha}")
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]
