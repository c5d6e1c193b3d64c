"""Git repository abstraction.

This module provides the Repository class covering every git command the
release flow issues. All operations return Result types; nothing raises on
a non-zero git exit.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.status():
        case Ok(status):
            if not status.is_clean:
                print(f"{len(status.entries)} uncommitted changes")
        case Err(e):
            print(f"Error: {e.message}")

    match repo.cherry_pick("current-copy"):
        case Ok(_):
            print("picked")
        case Err(e):
            print(f"conflict:\n{e.message}")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from deliver.core.result import Err, Ok, Result
from deliver.output.console import ConsoleProtocol, Style
from deliver.platform.process import ProcessError
from deliver.platform.process import run as run_process
from deliver.platform.process import run_silent

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed (without the leading ``git``)
        message: Error message, usually git's own stderr
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??", "UU")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_conflicted(self) -> bool:
        """True for unmerged paths left by a failed cherry-pick."""
        return self.xy in {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed ``git status --porcelain=v1``."""

    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def conflicted(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_conflicted]


class Repository:
    """Git repository driven through the ``git`` CLI.

    Attributes:
        path: Path to the repository root
        trace: When set, every git command is echoed there before it runs
    """

    def __init__(self, path: Path, *, trace: ConsoleProtocol | None = None) -> None:
        self.path = path
        self.trace = trace

    def exists(self) -> bool:
        """Check if this is a valid git repository (work tree or worktree file)."""
        return (self.path / ".git").exists()

    # -- queries ------------------------------------------------------------

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status."""
        result = self._run(["status", "--porcelain=v1"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def current_branch(self) -> str | None:
        """Get current branch name.

        Returns None if detached HEAD or error.
        """
        result = self._run(["rev-parse", "--symbolic-full-name", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def has_ref(self, ref: str) -> bool:
        return isinstance(self._run(["rev-parse", "--verify", "--quiet", ref]), Ok)

    def branch_exists(self, name: str) -> bool:
        return self.has_ref(f"refs/heads/{name}")

    def tag_exists(self, name: str) -> bool:
        return self.has_ref(f"refs/tags/{name}")

    def cherry_pick_in_progress(self) -> bool:
        """True while a cherry-pick waits for conflict resolution."""
        return self.has_ref("CHERRY_PICK_HEAD")

    def resolve_commit(self, rev: str) -> Result[str, GitError]:
        """Resolve ``rev`` to a full commit SHA."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, f"unknown commit: {rev}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def path_exists_at(self, ref: str, path: str) -> bool:
        """True if ``path`` is part of the tree of ``ref``."""
        return isinstance(self._run(["cat-file", "-e", f"{ref}:{path}"]), Ok)

    # -- branches and working tree ------------------------------------------

    def fetch(self, remote: str) -> Result[None, GitError]:
        return self._simple(["fetch", "--quiet", remote], "fetch failed")

    def create_branch(self, name: str, start_point: str) -> Result[None, GitError]:
        return self._simple(
            ["branch", "--quiet", name, start_point], f"cannot create branch {name}"
        )

    def delete_branches(self, names: Sequence[str]) -> Result[None, GitError]:
        return self._simple(["branch", "--quiet", "-D", *names], "cannot delete branches")

    def checkout(self, ref: str) -> Result[None, GitError]:
        return self._simple(["checkout", "--quiet", ref], f"cannot check out {ref}")

    def checkout_paths(self, ref: str, paths: Sequence[str]) -> Result[None, GitError]:
        """Restore ``paths`` in index and work tree from ``ref``."""
        return self._simple(
            ["checkout", "--quiet", ref, "--", *paths], f"cannot restore files from {ref}"
        )

    def remove_paths(
        self,
        paths: Sequence[str],
        *,
        force: bool = False,
        recursive: bool = False,
    ) -> Result[None, GitError]:
        """``git rm`` the given paths; paths that are not tracked are skipped."""
        args = ["rm", "--quiet", "--ignore-unmatch"]
        if force:
            args.append("-f")
        if recursive:
            args.append("-r")
        return self._simple([*args, "--", *paths], "git rm failed")

    def reset_soft(self, rev: str) -> Result[None, GitError]:
        return self._simple(["reset", "--quiet", "--soft", rev], f"cannot reset to {rev}")

    # -- history ------------------------------------------------------------

    def commit(
        self,
        message: str | None,
        *,
        sign: bool,
        amend: bool = False,
    ) -> Result[None, GitError]:
        """Create a signed-off commit.

        With ``amend`` the previous message is kept. Without a message and
        without ``amend``, git runs attached to the terminal and opens the
        operator's editor.
        """
        args = ["commit", "--signoff"]
        if sign:
            args.append("-S")
        if amend:
            args.extend(["--quiet", "--amend", "--no-edit"])
            return self._simple(args, "amend failed")
        if message is not None:
            args.extend(["--quiet", "-m", message])
            return self._simple(args, "commit failed")

        self._echo(args)
        result = run_silent(["git", "-C", str(self.path), *args], cwd=self.path)
        if isinstance(result, Err):
            return Err(
                GitError(
                    command="commit",
                    message="commit failed or was aborted (empty message?)",
                    returncode=result.error.returncode,
                )
            )
        return Ok(None)

    def cherry_pick(self, ref: str) -> Result[str, GitError]:
        """Cherry-pick ``ref`` onto HEAD, returning git's output either way."""
        return self._captured(["cherry-pick", ref])

    def cherry_pick_continue(self) -> Result[str, GitError]:
        return self._captured(["cherry-pick", "--continue", "--no-edit"])

    def tag(self, name: str, ref: str, *, sign: bool) -> Result[None, GitError]:
        """Create a signed (``-s``) or annotated tag named ``name`` on ``ref``."""
        kind = "-s" if sign else "-a"
        return self._simple(["tag", kind, "-m", name, name, ref], f"cannot create tag {name}")

    def push(self, remote: str, refspecs: Sequence[str]) -> Result[None, GitError]:
        return self._simple(["push", "--quiet", remote, *refspecs], f"push to {remote} failed")

    # -- internals ----------------------------------------------------------

    def _simple(self, args: list[str], fallback: str) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(args[0], result.error, fallback))
        return Ok(None)

    def _captured(self, args: list[str]) -> Result[str, GitError]:
        result = self._run(args)
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=" ".join(args),
                        message=e.output or str(e),
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip())

    def _echo(self, args: list[str]) -> None:
        if self.trace is not None:
            self.trace.print(f"git {' '.join(args)}", Style.DIM)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository; blocks until git exits."""
        self._echo(args)
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)

    def _parse_status(self, output: str) -> GitStatus:
        """Parse git status --porcelain=v1 output."""
        entries: list[StatusEntry] = []
        for line in output.splitlines():
            entry = self._parse_entry(line)
            if entry:
                entries.append(entry)
        return GitStatus(entries=tuple(entries))

    def _parse_entry(self, line: str) -> StatusEntry | None:
        if len(line) < 4:
            return None
        return StatusEntry(xy=line[:2], path=line[3:])


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.stderr.strip() or error.stdout.strip() or fallback,
        returncode=error.returncode,
    )
