"""Checks that run before the release flow touches any branch.

Every function here is read-only with respect to refs and the working tree:
a failing check leaves the repository exactly as it was.
"""

from __future__ import annotations

from deliver.core.config import ReleaseConfig
from deliver.core.result import Err, Ok, Result
from deliver.git.repository import Repository
from deliver.release.errors import ReleaseError
from deliver.release.ignore import read_ignore_list
from deliver.release.model import ReleaseRequest

_DIRTY_PREVIEW_LIMIT = 5


def check_fresh_run(
    *,
    repo: Repository,
    config: ReleaseConfig,
    request: ReleaseRequest,
) -> Result[tuple[str, ...], ReleaseError]:
    """Validate a fresh run and return the ignore list."""
    ignore_list = read_ignore_list(repo.path / config.ignore_file)
    if isinstance(ignore_list, Err):
        return ignore_list

    for check in (
        lambda: ensure_clean_tree(repo),
        lambda: ensure_on_branch(repo, config.development_branch),
        lambda: ensure_no_cherry_pick(repo),
        lambda: ensure_no_transient_branches(repo, config),
        lambda: ensure_start_commit(repo, request.start_commit),
        lambda: ensure_tags_free(repo, config, request.tag),
    ):
        result = check()
        if isinstance(result, Err):
            return result

    return ignore_list


def check_resume_run(*, repo: Repository, config: ReleaseConfig) -> Result[None, ReleaseError]:
    """Validate a ``--continue`` run.

    Whether a cherry-pick is actually pending is left to git: resuming
    without one fails in ``git cherry-pick --continue``.
    """
    ignore_list = read_ignore_list(repo.path / config.ignore_file)
    if isinstance(ignore_list, Err):
        return ignore_list
    return ensure_on_branch(repo, config.mirror_branch)


def ensure_clean_tree(repo: Repository) -> Result[None, ReleaseError]:
    status = repo.status()
    if isinstance(status, Err):
        return Err(
            ReleaseError(
                kind="git_failed",
                message="failed to check git status",
                hint=status.error.message,
            )
        )

    entries = status.value.entries
    if not entries:
        return Ok(None)

    conflicted = status.value.conflicted
    if conflicted:
        return Err(
            ReleaseError(
                kind="cherry_pick_in_progress",
                message="unresolved conflicts: " + ", ".join(e.path for e in conflicted),
                hint="resolve and stage them, then re-run with --continue, "
                "or give up with `git cherry-pick --abort`",
            )
        )

    preview = ", ".join(e.path for e in entries[:_DIRTY_PREVIEW_LIMIT])
    if len(entries) > _DIRTY_PREVIEW_LIMIT:
        preview += f" (+{len(entries) - _DIRTY_PREVIEW_LIMIT} more)"
    return Err(
        ReleaseError(
            kind="dirty_tree",
            message="please commit or stash all your local changes before releasing",
            hint=preview,
        )
    )


def ensure_on_branch(repo: Repository, expected: str) -> Result[None, ReleaseError]:
    current = repo.current_branch()
    if current == expected:
        return Ok(None)
    return Err(
        ReleaseError(
            kind="wrong_branch",
            message=f"current branch has to be {expected} (found {current or 'detached HEAD'})",
        )
    )


def ensure_no_cherry_pick(repo: Repository) -> Result[None, ReleaseError]:
    if not repo.cherry_pick_in_progress():
        return Ok(None)
    return Err(
        ReleaseError(
            kind="cherry_pick_in_progress",
            message="there is already a cherry-pick in progress",
            hint="finish it with --continue or abort it with `git cherry-pick --abort`",
        )
    )


def ensure_no_transient_branches(
    repo: Repository, config: ReleaseConfig
) -> Result[None, ReleaseError]:
    leftovers = [b for b in config.transient_branches if repo.branch_exists(b)]
    if not leftovers:
        return Ok(None)

    cleanup = f"`git branch -D {' '.join(leftovers)}`"
    if leftovers == [config.mirror_branch]:
        # What a --no-push run keeps on purpose.
        hint = (
            f"{config.mirror_branch} holds a local release that was never pushed; "
            f"push or inspect it, then remove it with {cleanup}"
        )
    else:
        hint = f"inspect them, then remove them with {cleanup}"
    return Err(
        ReleaseError(
            kind="stale_branches",
            message=f"branches left over from a previous release: {', '.join(leftovers)}",
            hint=hint,
        )
    )


def ensure_start_commit(repo: Repository, start_commit: str) -> Result[None, ReleaseError]:
    resolved = repo.resolve_commit(start_commit)
    if isinstance(resolved, Err):
        return Err(
            ReleaseError(kind="invalid_input", message=f"unknown start commit: {start_commit}")
        )

    if isinstance(repo.resolve_commit(f"{start_commit}~1"), Err):
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"start commit {start_commit} has no parent to squash onto",
            )
        )
    return Ok(None)


def ensure_tags_free(
    repo: Repository, config: ReleaseConfig, tag: str
) -> Result[None, ReleaseError]:
    taken = [t for t in (tag, f"{tag}{config.dev_tag_suffix}") if repo.tag_exists(t)]
    if not taken:
        return Ok(None)
    return Err(
        ReleaseError(
            kind="tag_exists",
            message=f"tag already exists: {', '.join(taken)}",
        )
    )
