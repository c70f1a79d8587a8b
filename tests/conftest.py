import logging
import sys

import pytest


@pytest.fixture(autouse=True)
def clean_env_and_modules(monkeypatch, tmp_path):
    """
    Ensure tests don't leak env, logger state, or cached env views.
    """

    keys = [
        "REQUESTARR_LOGS_DIR",
        "REQUESTARR_AUTH_DIR",
        "REQUESTARR_OUT_DIR",
        "REQUESTARR_COMMAND",
        "REQUESTARR_RUN_ID",
        "REQUESTARR_BOOTSTRAPPED",
        "REQUESTARR_VERBOSE",
        "REQUESTARR_QUIET",
        "REQUESTARR_PROVIDER",
        "REQUESTARR_CSV",
        "REQUESTARR_PLAYLIST",
        "REQUESTARR_CREATE_PLAYLIST",
        "REQUESTARR_REPORT_PATH",
        "REQUESTARR_WORKERS",
        "REQUESTARR_BATCH_SIZE",
        "REQUESTARR_MAX_ATTEMPTS",
        "REQUESTARR_BACKOFF_BASE_SEC",
        "REQUESTARR_BACKOFF_MULTIPLIER",
        "REQUESTARR_BACKOFF_MAX_SEC",
        "REQUESTARR_RATE_LIMIT",
        "REQUESTARR_RATE_WINDOW_SEC",
        "REQUESTARR_RUN_TIMEOUT_SEC",
        "SPOTIFY_CLIENT_ID",
        "SPOTIFY_CLIENT_SECRET",
        "SPOTIFY_REDIRECT_URI",
        "LOG_LEVEL",
        "LOG_RETENTION",
    ]
    for k in keys:
        monkeypatch.delenv(k, raising=False)

    # Never write into the project tree
    monkeypatch.setenv("REQUESTARR_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("REQUESTARR_AUTH_DIR", str(tmp_path / "auth"))
    monkeypatch.setenv("REQUESTARR_OUT_DIR", str(tmp_path / "out"))

    from env import reset_env_caches

    reset_env_caches()

    # Reset logger global state
    import logger.state

    logger.state.reset()

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    # Force re-import of logger modules (the console binds sys.stdout at import)
    for mod in [
        "logger",
        "logger.state",
        "logger.log_paths",
        "logger.file",
        "logger.console",
        "logger.retention",
    ]:
        sys.modules.pop(mod, None)

    yield

    reset_env_caches()
