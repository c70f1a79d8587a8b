"""
Process bootstrap for Requestarr.

The only place that writes run context into os.environ. The entry point
calls bootstrap_base_env() first, then bootstrap_run_context() once argparse
has run and before init_logging(). Every other module reads the environment
through env.get_env() / env.get_logging_env().
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Optional

from env import PROJECT_ROOT, load_dotenv_file, reset_env_caches

_BOOTSTRAPPED = False


def bootstrap_base_env(
    *,
    config_dir: str = "config",
    env_file: str = ".env",
    required: bool = False,
) -> None:
    """Load config/.env (shell values win) and pick the run id. Idempotent."""
    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return

    dotenv_path = PROJECT_ROOT / config_dir / env_file
    if not dotenv_path.exists() and required:
        raise RuntimeError(
            f"Config file {dotenv_path} is required but missing "
            f"(copy {config_dir}/.env.example to get started)"
        )
    load_dotenv_file(dotenv_path)

    if not os.environ.get("REQUESTARR_RUN_ID"):
        os.environ["REQUESTARR_RUN_ID"] = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    os.environ.setdefault("REQUESTARR_BOOTSTRAPPED", "1")

    reset_env_caches()
    _BOOTSTRAPPED = True


def _stamp(key: str, value: Optional[str]) -> None:
    if value is None:
        return
    os.environ[key] = value


def _stamp_flag(key: str, value: Optional[bool]) -> None:
    if value is None:
        return
    os.environ[key] = "1" if value else "0"


def bootstrap_run_context(
    *,
    command: str,
    provider: Optional[str] = None,
    csv_path: Optional[str] = None,
    playlist: Optional[str] = None,
    create_playlist: Optional[bool] = None,
    report_path: Optional[str] = None,
    workers: Optional[int] = None,
    batch_size: Optional[int] = None,
    verbose: Optional[bool] = None,
    quiet: Optional[bool] = None,
) -> None:
    """Establish run-scoped context used by logging + pipeline stages.

    Only options the user actually passed are stamped, so CLI flags
    override config/.env and everything else falls through to it.
    """

    os.environ["REQUESTARR_COMMAND"] = command

    _stamp("REQUESTARR_PROVIDER", provider)
    _stamp("REQUESTARR_CSV", csv_path)
    _stamp("REQUESTARR_PLAYLIST", playlist)
    _stamp("REQUESTARR_REPORT_PATH", report_path)
    _stamp("REQUESTARR_WORKERS", str(workers) if workers is not None else None)
    _stamp("REQUESTARR_BATCH_SIZE", str(batch_size) if batch_size is not None else None)

    _stamp_flag("REQUESTARR_CREATE_PLAYLIST", create_playlist)
    _stamp_flag("REQUESTARR_VERBOSE", verbose)
    _stamp_flag("REQUESTARR_QUIET", quiet)

    # cached Environment snapshots predate these values
    reset_env_caches()
