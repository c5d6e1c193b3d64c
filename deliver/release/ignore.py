"""Reading the release ignore file.

One path per line, relative to the repository root. Blank lines and ``#``
comments are skipped; order is kept and duplicates are harmless.
"""

from __future__ import annotations

from pathlib import Path

from deliver.core.result import Err, Ok, Result
from deliver.release.errors import ReleaseError


def parse_ignore_list(text: str) -> tuple[str, ...]:
    entries: list[str] = []
    for line in text.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        entries.append(entry)
    return tuple(entries)


def read_ignore_list(path: Path) -> Result[tuple[str, ...], ReleaseError]:
    if not path.is_file():
        return Err(
            ReleaseError(
                kind="missing_ignore_file",
                message=f"cannot find {path.name} file in {path.parent}",
            )
        )

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Err(
            ReleaseError(
                kind="missing_ignore_file",
                message=f"cannot read {path.name}: {e}",
            )
        )

    return Ok(parse_ignore_list(text))
