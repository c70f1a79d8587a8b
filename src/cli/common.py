from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from env import logs_dir

# Exit code -> RUN_STATUS marker written as the last line of a run log
RUN_STATUS_BY_EXIT: Dict[int, str] = {
    0: "ok",
    3: "incomplete",
    10: "cancelled",
    12: "auth_invalid",
    20: "setup_failed",
}

_RUN_STATUS_RE = re.compile(r"RUN_STATUS=([a-z_]+)")


# ----------------------------
# Help dispatch (subparser-local)
# ----------------------------


def dispatch_subparser_help(
    parser: argparse.ArgumentParser, path: Optional[List[str]]
) -> int:
    """`X help [subcmd ...]` for a subtree parser."""
    if not path:
        parser.print_help()
        return 0

    try:
        parser.parse_args(path + ["--help"])
    except SystemExit:
        pass
    return 0


# ----------------------------
# Run log files
# ----------------------------


def resolve_log_dir(*, command: Optional[str], explicit: Optional[str]) -> Path:
    """logs/ or logs/<command>/, unless an explicit directory is given."""
    if explicit:
        return Path(explicit).expanduser().resolve()

    base = logs_dir()
    return (base / command).resolve() if command else base


def find_log_file(log_dir: Path, name: str) -> Optional[Path]:
    """Exact file name, then stem, searched below log_dir."""
    if not log_dir.exists():
        return None

    direct = log_dir / (name if name.endswith(".log") else f"{name}.log")
    if direct.is_file():
        return direct

    stem = Path(name).stem
    return next((p for p in log_dir.rglob("*.log") if p.stem == stem), None)


def print_tail(path: Path, lines: int) -> None:
    data = path.read_text(encoding="utf-8", errors="replace").splitlines()
    for line in data[-lines:] if lines > 0 else data:
        print(line)


def infer_run_status(path: Path) -> str:
    """
    Outcome of the run that wrote `path`.

    Uses the last RUN_STATUS=<value> marker; a log without one belongs to a
    run that is still going or was killed.
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return "unknown"

    found = _RUN_STATUS_RE.findall(text)
    return found[-1] if found else "unknown"


@dataclass(frozen=True)
class RunFile:
    run_id: str
    command: str
    path: Path
    mtime: float
    size: int

    @property
    def status(self) -> str:
        return infer_run_status(self.path)


def list_run_files(log_dir: Path) -> List[RunFile]:
    """Every *.log below log_dir, newest first."""
    if not log_dir.exists():
        return []

    items: List[RunFile] = []
    for p in log_dir.rglob("*.log"):
        try:
            st = p.stat()
        except OSError:
            continue
        items.append(
            RunFile(
                run_id=p.stem,
                command=p.parent.name,
                path=p,
                mtime=st.st_mtime,
                size=st.st_size,
            )
        )

    items.sort(key=lambda r: r.mtime, reverse=True)
    return items


def format_mtime(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


# ----------------------------
# Plain output (pipe-friendly)
# ----------------------------


def print_table(headers: List[str], rows: List[List[str]]) -> None:
    if not rows:
        print("(no results)")
        return

    widths = [max(len(h), *(len(str(r[i])) for r in rows)) for i, h in enumerate(headers)]
    fmt = "  ".join(f"{{:{w}}}" for w in widths)

    print(fmt.format(*headers))
    print(fmt.format(*("-" * w for w in widths)))
    for row in rows:
        print(fmt.format(*(str(c) for c in row)))
