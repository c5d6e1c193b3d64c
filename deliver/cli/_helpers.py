"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from deliver.core.errors import ErrorCode
from deliver.core.result import Err, Result
from deliver.release.errors import ReleaseError
from deliver.release.view import print_leftover_branches, print_release_error

if TYPE_CHECKING:
    from deliver.cli.context import CLIContext


def exit_usage(message: str, ctx: CLIContext) -> NoReturn:
    ctx.console.error(message)
    raise typer.Exit(code=int(ErrorCode.RELEASE_FAILED))


def exit_on_release_error(result: Result[None, ReleaseError], ctx: CLIContext) -> None:
    """Exit with RELEASE_FAILED if result is Err, otherwise return.

    Git failures in the middle of a run stop with the transient branches
    still around; those are listed so the operator can inspect or drop them.
    """
    if not isinstance(result, Err):
        return

    error = result.error
    print_release_error(error, ctx.console)
    if error.kind == "git_failed":
        report_leftover_branches(ctx)
    raise typer.Exit(code=int(ErrorCode.RELEASE_FAILED))


def existing_transient_branches(ctx: CLIContext) -> list[str]:
    return [b for b in ctx.config.transient_branches if ctx.repo.branch_exists(b)]


def report_leftover_branches(ctx: CLIContext) -> None:
    print_leftover_branches(
        existing_transient_branches(ctx),
        ctx.console,
        current_branch=ctx.repo.current_branch(),
        development_branch=ctx.config.development_branch,
    )
