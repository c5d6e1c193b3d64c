"""Git operations module.

Usage:
    from deliver.git import Repository

    repo = Repository(Path("/path/to/repo"))
    if repo.cherry_pick_in_progress():
        ...
"""

from deliver.git.repository import (
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]
