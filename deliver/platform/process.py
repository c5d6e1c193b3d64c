"""Running external commands (in practice: git) as Results.

A non-zero exit is data, not an exception: the release flow needs git's
output from a failed cherry-pick to tell the operator what conflicted.

    match run(["git", "cherry-pick", "current-copy"], cwd=root):
        case Ok(stdout):
            ...
        case Err(error):
            show(error.output)
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from deliver.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_silent"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited non-zero or could not start.

    ``returncode`` is -1 when the process never ran.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """Combined output, as an operator would have seen it in a terminal."""
        parts = [p.strip() for p in (self.stdout, self.stderr) if p.strip()]
        return "\n".join(parts)

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` in ``cwd`` with both streams captured.

    Returns Ok(stdout) on exit 0. Anything else, including a missing
    executable, becomes Err(ProcessError). There is no timeout.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def run_silent(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Execute a command attached to the terminal.

    Used where git needs the operator, e.g. to open an editor for the
    release commit message. Nothing is captured.
    """
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=False)
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(command=tuple(cmd), returncode=proc.returncode, stdout="", stderr="")
        )

    return Ok(None)
