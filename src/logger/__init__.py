from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from env import get_logging_env
from .console import build_console_handler
from .file import build_file_handler, repoint_file_handler
from .log_paths import run_log_file
from .retention import enforce_retention
from . import state as _state

# Third-party loggers that are chatty at INFO/DEBUG
_NOISY = {
    "spotipy": logging.WARNING,
    "urllib3": logging.WARNING,
    "requests_oauthlib": logging.WARNING,
    "google": logging.WARNING,
    "googleapiclient": logging.WARNING,
    "googleapiclient.discovery_cache": logging.ERROR,
}


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _level_to_int(level: str | int) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(str(level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def _ensure_run_id() -> str:
    run_id = os.environ.get("REQUESTARR_RUN_ID")
    if not run_id:
        run_id = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        os.environ["REQUESTARR_RUN_ID"] = run_id
    return run_id


def _existing_file_handler(root: logging.Logger) -> Optional[logging.FileHandler]:
    for h in root.handlers:
        if isinstance(h, logging.FileHandler):
            return h
    return None


def init_logging() -> Path:
    """
    Initialize logging for the whole process and return the run log path.

    - Handlers are attached ONLY to the root logger.
    - Named loggers inherit via propagation.
    - Safe to call again (e.g. after the command is known); the file
      handler is repointed, not stacked.
    """
    env = get_logging_env()
    for name, level in _NOISY.items():
        logging.getLogger(name).setLevel(level)

    command = os.environ.get("REQUESTARR_COMMAND") or "bootstrap"
    run_id = _ensure_run_id()
    logfile = run_log_file(command, run_id)

    enforce_retention(logfile.parent, int(env.log_retention), protect=logfile)

    # verbose forces DEBUG regardless of LOG_LEVEL
    root_level = logging.DEBUG if env.verbose else _level_to_int(env.log_level)
    root = logging.getLogger()

    if _state.STATE.matches(logfile):
        root.setLevel(root_level)
        return logfile

    file_handler = _existing_file_handler(root)
    root.handlers.clear()
    root.setLevel(root_level)

    if file_handler is not None:
        repoint_file_handler(file_handler, logfile)
    else:
        file_handler = build_file_handler(logfile)
    root.addHandler(file_handler)

    if not env.quiet:
        root.addHandler(build_console_handler(root_level))

    _state.STATE = _state.LoggingState(
        initialized=True,
        command=command,
        run_id=run_id,
        log_file=logfile,
    )
    return logfile
