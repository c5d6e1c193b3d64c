"""Release bounded context.

- model: run mode, steps and session state
- ignore / preflight: inputs and read-only checks
- fsm / flow: orchestration of the git operations
- view: presentation of failures
"""

from __future__ import annotations

from deliver.release.errors import ReleaseError
from deliver.release.flow import run_release
from deliver.release.model import ReleaseRequest, ReleaseStep, RunMode

__all__ = [
    "ReleaseError",
    "ReleaseRequest",
    "ReleaseStep",
    "RunMode",
    "run_release",
]
