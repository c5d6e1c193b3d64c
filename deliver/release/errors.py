"""Error types for the release flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_input",
    "invalid_config",
    "missing_ignore_file",
    "dirty_tree",
    "wrong_branch",
    "cherry_pick_in_progress",
    "stale_branches",
    "tag_exists",
    "conflict",
    "git_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``hint`` carries what the operator should look at next: git's own output
    for failed commands, a cleanup command for leftovers.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def is_conflict(self) -> bool:
        return self.kind == "conflict"
