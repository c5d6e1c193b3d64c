from __future__ import annotations

from pathlib import Path

import typer

from deliver import __version__
from deliver.cli._helpers import exit_on_release_error, exit_usage, report_leftover_branches
from deliver.cli.context import build_context
from deliver.core.errors import ErrorCode
from deliver.release.flow import run_release
from deliver.release.model import ReleaseRequest, RunMode

# Unknown options are collected into `extra` so they can be rejected with the
# release exit code instead of click's usage code.
_CONTEXT_SETTINGS = {"ignore_unknown_options": True, "help_option_names": ["-h", "--help"]}

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.command(context_settings=_CONTEXT_SETTINGS)
def release(
    start_commit: str | None = typer.Argument(
        None,
        metavar="START_COMMIT",
        help="First commit of the range to squash, up to the development branch tip.",
        show_default=False,
    ),
    tag: str | None = typer.Argument(
        None,
        metavar="TAG",
        help="Tag for the delivery commit; the development tip gets TAG-dev.",
        show_default=False,
    ),
    extra: list[str] | None = typer.Argument(None, hidden=True),
    resume: bool = typer.Option(
        False,
        "--continue",
        help="Continue after a failed cherry-pick once conflicts are resolved and staged.",
    ),
    no_push: bool = typer.Option(
        False,
        "--no-push",
        help="Do everything locally; keep the delivery mirror branch for inspection.",
    ),
    remote: str | None = typer.Option(
        None, "--remote", help="Remote to push to [default: origin]."
    ),
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Release commit message (default: open the editor).",
    ),
    no_sign: bool = typer.Option(False, "--no-sign", help="Do not GPG-sign the commit and tags."),
    repo_path: Path | None = typer.Option(
        None,
        "--repo",
        "-C",
        help="Repository root (default: current directory).",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Release config file (default: <repo>/.release.toml when present).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo every git command."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Promote commits from the development branch to the delivery branch.

    Squashes START_COMMIT..main into one signed commit without the files
    listed in .release_ignore, cherry-picks it onto the delivery branch,
    tags both branches and pushes.
    """
    ctx = build_context(
        repo_path=repo_path,
        config_path=config_path,
        remote=remote,
        sign=False if no_sign else None,
        verbose=verbose,
    )

    # Unknown flags land in whichever positional slot is free.
    for arg in (start_commit, tag, *(extra or [])):
        if arg and arg.startswith("-"):
            exit_usage(f"unknown flag passed to the release: {arg}", ctx)
    for arg in extra or []:
        exit_usage(f"unexpected argument: {arg}", ctx)

    if not start_commit:
        exit_usage("pass the SHA of the first release commit as the first argument", ctx)
    if not tag:
        exit_usage("pass the TAG name for the release as the second argument", ctx)

    request = ReleaseRequest(
        start_commit=start_commit,
        tag=tag,
        mode=RunMode.RESUME if resume else RunMode.FRESH,
        push=not no_push,
        message=message,
    )

    try:
        result = run_release(
            repo=ctx.repo,
            config=ctx.config,
            request=request,
            console=ctx.console,
            verbose=verbose,
        )
    except KeyboardInterrupt:
        ctx.console.newline()
        ctx.console.warning("interrupted")
        report_leftover_branches(ctx)
        raise typer.Exit(code=int(ErrorCode.INTERRUPTED))

    exit_on_release_error(result, ctx)


def main() -> None:
    app()
