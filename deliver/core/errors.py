"""Exit codes for the deliver CLI.

The release script contract is deliberately coarse: 0 when the delivery
branch was promoted, 1 for every usage, precondition or conflict failure.
Ctrl+C keeps the shell convention of 128 + SIGINT.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. These values are part of the CLI contract."""

    OK = 0
    RELEASE_FAILED = 1
    INTERRUPTED = 130
