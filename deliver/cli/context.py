from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from deliver.core.config import ReleaseConfig, load_config, load_config_or_default
from deliver.core.errors import ErrorCode
from deliver.core.result import Err
from deliver.git.repository import Repository
from deliver.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo: Repository
    config: ReleaseConfig
    console: ConsoleProtocol


def build_context(
    *,
    repo_path: Path | None,
    config_path: Path | None,
    remote: str | None,
    sign: bool | None,
    verbose: bool,
) -> CLIContext:
    console = RichConsole()

    root = (repo_path or Path.cwd()).expanduser()
    repo = Repository(root, trace=console if verbose else None)
    if not repo.exists():
        console.error(f"not a git repository: {root}")
        raise typer.Exit(code=int(ErrorCode.RELEASE_FAILED))

    if config_path is not None:
        config_result = load_config(config_path, repo_root=root)
    else:
        config_result = load_config_or_default(root)
    if isinstance(config_result, Err):
        console.error(config_result.error.message)
        raise typer.Exit(code=int(ErrorCode.RELEASE_FAILED))

    return CLIContext(
        repo=repo,
        config=config_result.value.with_overrides(remote=remote, sign=sign),
        console=console,
    )
