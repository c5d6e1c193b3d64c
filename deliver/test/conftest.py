from __future__ import annotations

from pathlib import Path

import pytest

from deliver.test._sandbox import Sandbox, git


@pytest.fixture
def sandbox(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Sandbox:
    # Keep the user's global git config (signing, hooks, editor) out of the way.
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_EDITOR", "true")

    remote = tmp_path / "origin.git"
    root = tmp_path / "work"
    root.mkdir()

    git(tmp_path, "init", "--quiet", "--bare", str(remote))
    git(root, "init", "--quiet")
    git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    for key, value in (
        ("user.name", "Release Bot"),
        ("user.email", "release@example.com"),
        ("commit.gpgsign", "false"),
        ("tag.gpgsign", "false"),
    ):
        git(root, "config", key, value)
    git(root, "remote", "add", "origin", str(remote))

    box = Sandbox(root=root, remote=remote)
    box.commit({"README.md": "base\n"}, "initial")
    box.git("push", "--quiet", "origin", "main:delivery")
    box.git("fetch", "--quiet", "origin")
    return box
