"""Tests for git/repository.py."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from deliver.core.result import Err, Ok
from deliver.git.repository import GitStatus, Repository, StatusEntry
from deliver.output.console import MockConsole, Style
from deliver.test._sandbox import Sandbox, requires_git

# =============================================================================
# StatusEntry / GitStatus Tests
# =============================================================================


class TestStatusEntry:
    def test_conflicted_entries(self) -> None:
        """Unmerged codes left by a failed cherry-pick."""
        for xy in ("UU", "AA", "DU", "UD"):
            assert StatusEntry(xy=xy, path="README.md").is_conflicted is True
        for xy in ("M ", " M", "??", "A "):
            assert StatusEntry(xy=xy, path="README.md").is_conflicted is False


class TestGitStatus:
    def test_clean(self) -> None:
        assert GitStatus().is_clean is True

    def test_conflicted_list(self) -> None:
        status = GitStatus(
            entries=(
                StatusEntry(xy="UU", path="README.md"),
                StatusEntry(xy="M ", path="feature.py"),
            ),
        )
        assert status.is_clean is False
        assert [e.path for e in status.conflicted] == ["README.md"]


# =============================================================================
# Repository Tests - Mocked subprocess
# =============================================================================


def make_completed_process(
    stdout: str = "",
    stderr: str = "",
    returncode: int = 0,
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(
        args=["git"],
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


def _git_args(mock_run: MagicMock) -> list[str]:
    """Arguments of the last git call, after ``git -C <path>``."""
    cmd: list[str] = mock_run.call_args[0][0]
    return cmd[3:]


class TestRepository:
    def test_exists_with_git_dir(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        assert Repository(tmp_path).exists() is True

    def test_exists_with_git_file(self, tmp_path: Path) -> None:
        """Worktrees carry a .git file instead of a directory."""
        (tmp_path / ".git").write_text("gitdir: ../.git/worktrees/w")
        assert Repository(tmp_path).exists() is True

    def test_exists_no_git(self, tmp_path: Path) -> None:
        assert Repository(tmp_path).exists() is False

    @patch("subprocess.run")
    def test_status_with_changes(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stdout="M  staged.py\n M unstaged.py\n?? new.py\nUU README.md\n"
        )

        result = Repository(tmp_path).status()

        assert isinstance(result, Ok)
        status = result.value
        paths = [e.path for e in status.entries]
        assert paths == ["staged.py", "unstaged.py", "new.py", "README.md"]
        assert [e.xy for e in status.entries] == ["M ", " M", "??", "UU"]
        assert [e.path for e in status.conflicted] == ["README.md"]

    @patch("subprocess.run")
    def test_status_error(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stderr="fatal: not a git repository", returncode=128
        )

        result = Repository(tmp_path).status()

        assert isinstance(result, Err)
        assert result.error.command == "status"
        assert result.error.returncode == 128
        assert "not a git repository" in result.error.message

    @patch("subprocess.run")
    def test_current_branch(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="main\n")
        assert Repository(tmp_path).current_branch() == "main"

    @patch("subprocess.run")
    def test_current_branch_detached(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="HEAD\n")
        assert Repository(tmp_path).current_branch() is None

    @patch("subprocess.run")
    def test_commands_run_inside_repository(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        Repository(tmp_path).fetch("origin")

        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["git", "-C", str(tmp_path)]
        assert cmd[3:] == ["fetch", "--quiet", "origin"]

    @patch("subprocess.run")
    def test_git_commands_run_without_timeout(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Signing can sit on a passphrase prompt; git must not be killed."""
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        for call in (
            lambda: repo.commit("Release v1.0", sign=True),
            lambda: repo.commit(None, sign=True, amend=True),
            lambda: repo.tag("v1.0", "HEAD", sign=True),
            lambda: repo.cherry_pick("current-copy"),
            lambda: repo.fetch("origin"),
            lambda: repo.push("origin", ["HEAD:delivery"]),
        ):
            call()
            assert mock_run.call_args.kwargs.get("timeout") is None

    @patch("subprocess.run")
    def test_remove_paths_flags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.remove_paths(["secrets", "notes.txt"], recursive=True)
        assert _git_args(mock_run) == [
            "rm", "--quiet", "--ignore-unmatch", "-r", "--", "secrets", "notes.txt",
        ]

        repo.remove_paths([".release_ignore"], force=True)
        assert _git_args(mock_run) == [
            "rm", "--quiet", "--ignore-unmatch", "-f", "--", ".release_ignore",
        ]

    @patch("subprocess.run")
    def test_commit_with_message(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        result = Repository(tmp_path).commit("Release v1.0", sign=True)

        assert isinstance(result, Ok)
        assert _git_args(mock_run) == [
            "commit", "--signoff", "-S", "--quiet", "-m", "Release v1.0",
        ]

    @patch("subprocess.run")
    def test_commit_amend_keeps_message(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        Repository(tmp_path).commit(None, sign=False, amend=True)

        assert _git_args(mock_run) == ["commit", "--signoff", "--quiet", "--amend", "--no-edit"]

    @patch("subprocess.run")
    def test_commit_without_message_opens_editor(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        mock_run.return_value = make_completed_process(returncode=1)

        result = Repository(tmp_path).commit(None, sign=False)

        assert isinstance(result, Err)
        assert "aborted" in result.error.message
        # Attached to the terminal: nothing captured.
        assert "capture_output" not in mock_run.call_args.kwargs
        assert _git_args(mock_run) == ["commit", "--signoff"]

    @patch("subprocess.run")
    def test_tag_signed_or_annotated(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.tag("v1.0", "HEAD", sign=True)
        assert _git_args(mock_run) == ["tag", "-s", "-m", "v1.0", "v1.0", "HEAD"]

        repo.tag("v1.0-dev", "main", sign=False)
        assert _git_args(mock_run) == ["tag", "-a", "-m", "v1.0-dev", "v1.0-dev", "main"]

    @patch("subprocess.run")
    def test_cherry_pick_failure_keeps_output(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stdout="CONFLICT (content): Merge conflict in README.md\n",
            stderr="error: could not apply 1a2b3c4... Release\n",
            returncode=1,
        )

        result = Repository(tmp_path).cherry_pick("current-copy")

        assert isinstance(result, Err)
        assert "CONFLICT (content)" in result.error.message
        assert "could not apply" in result.error.message
        assert result.error.returncode == 1

    @patch("subprocess.run")
    def test_trace_echoes_commands(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        console = MockConsole()

        Repository(tmp_path, trace=console).checkout("delivery-local")

        assert console.find("git checkout --quiet delivery-local")
        assert console.outputs[0].style == Style.DIM


# =============================================================================
# Repository Tests - Real git
# =============================================================================


@requires_git
class TestRepositoryWithGit:
    def test_queries(self, sandbox: Sandbox) -> None:
        repo = Repository(sandbox.root)
        sha = sandbox.head()

        assert repo.current_branch() == "main"
        assert repo.branch_exists("main") is True
        assert repo.branch_exists("current-copy") is False
        assert repo.has_ref("origin/delivery") is True
        assert repo.resolve_commit("main") == Ok(sha)
        assert isinstance(repo.resolve_commit("no-such-ref"), Err)
        assert repo.path_exists_at("main", "README.md") is True
        assert repo.path_exists_at("main", ".release_ignore") is False

    def test_tags(self, sandbox: Sandbox) -> None:
        repo = Repository(sandbox.root)

        assert isinstance(repo.tag("v0.1", "HEAD", sign=False), Ok)

        assert repo.tag_exists("v0.1") is True
        assert repo.tag_exists("v0.2") is False
        assert sandbox.git("cat-file", "-t", "v0.1").strip() == "tag"

    def test_cherry_pick_conflict_is_detectable(self, sandbox: Sandbox) -> None:
        repo = Repository(sandbox.root)
        sandbox.push_delivery_change({"README.md": "delivery\n"}, "delivery edit")
        sandbox.commit({"README.md": "main\n"}, "main edit")
        sandbox.git("fetch", "--quiet", "origin")
        sandbox.git("checkout", "--quiet", "-b", "delivery-local", "origin/delivery")

        result = repo.cherry_pick("main")

        assert isinstance(result, Err)
        assert "README.md" in result.error.message
        assert repo.cherry_pick_in_progress() is True
        status = repo.status()
        assert isinstance(status, Ok)
        assert [e.path for e in status.value.conflicted] == ["README.md"]
