from __future__ import annotations

import logging
import os
from pathlib import Path

# Resolver workers log from pool threads; keep the thread name in the file.
FILE_FORMAT = (
    "%(asctime)s | [%(levelname)s] | %(run_id)s | %(threadName)s | "
    "%(name)s | %(message)s"
)


class RunContextFilter(logging.Filter):
    """Stamp every file record with the current run id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = os.environ.get("REQUESTARR_RUN_ID", "-")
        return True


def build_file_handler(logfile: Path) -> logging.FileHandler:
    logfile.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(logfile, encoding="utf-8", delay=True)
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RunContextFilter())
    return handler


def repoint_file_handler(handler: logging.FileHandler, new_logfile: Path) -> None:
    """
    Move an existing handler to a new run file.

    The stream is reopened lazily on the next record, like a delayed handler.
    """
    new_logfile.parent.mkdir(parents=True, exist_ok=True)

    handler.acquire()
    try:
        handler.close()
        handler.baseFilename = str(new_logfile)
        handler.stream = None
    finally:
        handler.release()
