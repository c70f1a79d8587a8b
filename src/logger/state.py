from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class LoggingState:
    """What init_logging last wired up for this process."""

    initialized: bool = False
    command: Optional[str] = None
    run_id: Optional[str] = None
    log_file: Optional[Path] = None

    def matches(self, log_file: Path) -> bool:
        return self.initialized and self.log_file == log_file


STATE = LoggingState()


def reset() -> None:
    global STATE
    STATE = LoggingState()
