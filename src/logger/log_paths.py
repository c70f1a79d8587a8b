from __future__ import annotations

import re
from pathlib import Path

from env import logs_dir

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def _safe(part: str) -> str:
    return _UNSAFE.sub("_", part).strip("._") or "run"


def module_logs_dir(command: str) -> Path:
    """logs/<command>/, created on demand."""
    path = logs_dir() / _safe(command)
    path.mkdir(parents=True, exist_ok=True)
    return path


def run_log_file(command: str, run_id: str) -> Path:
    """logs/<command>/<command>-<run_id>.log"""
    safe = _safe(command)
    return module_logs_dir(command) / f"{safe}-{_safe(run_id)}.log"
