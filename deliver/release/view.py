"""Rendering of release errors for the operator."""

from __future__ import annotations

from collections.abc import Sequence

from deliver.output.console import ConsoleProtocol, Style
from deliver.release.errors import ReleaseError

CONFLICT_STEPS: tuple[str, ...] = (
    "Check the git message below.",
    "Resolve conflicts.",
    "Add the resolved files to the staging area.",
    "Re-run the release with the same arguments plus the --continue flag.",
)


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    console.error(error.message)

    if error.is_conflict:
        console.print("Please do the following steps:")
        for i, step in enumerate(CONFLICT_STEPS, start=1):
            console.print(f"  {i}.) {step}")
        console.newline()
        if error.hint:
            console.print("Git error:", Style.BOLD)
            console.print(error.hint)
        return

    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def print_leftover_branches(
    branches: Sequence[str],
    console: ConsoleProtocol,
    *,
    current_branch: str | None,
    development_branch: str,
) -> None:
    """Tell the operator which transient branches a failed run left behind.

    git refuses to delete the checked-out branch, so when HEAD is still on
    one of them the hint starts by going back to the development branch.
    """
    if not branches:
        return
    console.warning(f"transient branches left in place: {', '.join(branches)}")
    cleanup = f"`git branch -D {' '.join(branches)}`"
    if current_branch in branches:
        cleanup = f"`git checkout -f {development_branch}`, then {cleanup}"
    console.print(f"hint: inspect them, then remove with {cleanup}", Style.DIM)
