from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from env import get_logging_env

# Shared by RichHandler and the report table so their output interleaves
UI_CONSOLE = Console(
    file=sys.stdout,
    soft_wrap=True,
)


class ConsoleGateFilter(logging.Filter):
    """Drop console output entirely in quiet mode."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not get_logging_env().quiet


class WorkerFormatter(logging.Formatter):
    """
    Prefix records logged from resolver pool threads with the worker name,
    so interleaved search logs can be told apart on the console.
    """

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if record.threadName and record.threadName.startswith("resolve"):
            return f"[{record.threadName}] {msg}"
        return msg


def build_console_handler(level: int = logging.NOTSET) -> logging.Handler:
    verbose = get_logging_env().verbose

    handler = RichHandler(
        console=UI_CONSOLE,
        show_level=True,
        show_time=verbose,
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setLevel(level)

    # RichHandler renders the level column itself
    handler.setFormatter(WorkerFormatter("%(message)s"))

    handler.addFilter(ConsoleGateFilter())
    return handler
