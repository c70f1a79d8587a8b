from __future__ import annotations

from pathlib import Path
from typing import Optional


def enforce_retention(
    log_dir: Path, keep: int, *, protect: Optional[Path] = None
) -> int:
    """
    Delete all but the newest `keep` run logs in log_dir.

    The current run's file (`protect`) is never deleted and does not count
    against `keep`. Returns the number of files removed.
    """
    if keep <= 0 or not log_dir.exists():
        return 0

    candidates = [p for p in log_dir.glob("*.log") if p != protect]
    candidates.sort(key=lambda p: p.stat().st_mtime, reverse=True)

    removed = 0
    for old in candidates[keep:]:
        try:
            old.unlink()
            removed += 1
        except OSError:
            continue
    return removed
