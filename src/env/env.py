from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import config
from env.paths import PROJECT_ROOT

# ------------------------------------------------------------
# Minimal dotenv loader (read-only helper, bootstrap owns usage)
# ------------------------------------------------------------


def _parse_dotenv_line(raw: str) -> Optional[Tuple[str, str]]:
    line = raw.strip()
    if not line or line.startswith("#"):
        return None

    key, sep, value = line.partition("=")
    if not sep:
        return None

    key = key.strip()
    if key.startswith("export "):
        key = key[len("export ") :].strip()

    value = value.strip()
    if value[:1] in ("'", '"'):
        quote = value[0]
        end = value.find(quote, 1)
        # unterminated quotes are kept verbatim
        if end != -1:
            return key, value[1:end]

    value = re.split(r"\s#", value, maxsplit=1)[0].rstrip()
    return key, value


def load_dotenv_file(path: Path) -> int:
    """
    Load KEY=VALUE lines from `path` into os.environ.

    Existing variables always win, so shell exports and CLI-stamped context
    override config/.env. Returns the number of variables set.
    """
    if not path.exists():
        return 0

    loaded = 0
    for raw in path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_dotenv_line(raw)
        if parsed is None:
            continue
        key, value = parsed
        if key and key not in os.environ:
            os.environ[key] = value
            loaded += 1

    return loaded


# ------------------------------------------------------------
# Logs path (logger depends on this)
# ------------------------------------------------------------


def logs_dir() -> Path:
    return (
        Path(os.environ.get("REQUESTARR_LOGS_DIR", PROJECT_ROOT / "logs"))
        .expanduser()
        .resolve()
    )

# ------------------------------------------------------------
# Errors / helpers
# ------------------------------------------------------------


class ConfigError(RuntimeError):
    pass


def _as_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(v: str, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _as_float(v: str, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


# ------------------------------------------------------------
# Logging environment (SAFE ANYWHERE)
# ------------------------------------------------------------


@dataclass(frozen=True)
class LoggingEnvironment:
    log_level: str
    log_retention: int
    verbose: bool
    quiet: bool
    interactive: bool


def get_logging_env() -> LoggingEnvironment:
    log_level = os.environ.get("LOG_LEVEL", "INFO")
    log_retention = _as_int(os.environ.get("LOG_RETENTION", "30"), 30)

    verbose = _as_bool(os.environ.get("REQUESTARR_VERBOSE", "0"))
    quiet = _as_bool(os.environ.get("REQUESTARR_QUIET", "0"))

    interactive = not quiet and sys.stdout.isatty()

    return LoggingEnvironment(
        log_level=log_level,
        log_retention=log_retention,
        verbose=verbose,
        quiet=quiet,
        interactive=interactive,
    )


# ------------------------------------------------------------
# Full runtime environment (SYNC ONLY)
# ------------------------------------------------------------


class Environment:
    def __init__(self):
        # Logging snapshot (immutable)
        self._logging = get_logging_env()

        # ---- PROVIDER ----
        self.provider = os.environ.get("REQUESTARR_PROVIDER", "spotify").strip().lower()
        if self.provider not in config.SUPPORTED_PROVIDERS:
            raise ConfigError(
                f"Unsupported REQUESTARR_PROVIDER: {self.provider} "
                f"(expected one of {', '.join(config.SUPPORTED_PROVIDERS)})"
            )

        self.spotify_client_id = os.environ.get("SPOTIFY_CLIENT_ID", "")
        self.spotify_client_secret = os.environ.get("SPOTIFY_CLIENT_SECRET", "")
        self.spotify_redirect_uri = os.environ.get(
            "SPOTIFY_REDIRECT_URI", config.DEFAULT_SPOTIFY_REDIRECT_URI
        )

        self.request_timeout = _as_int(
            os.environ.get("REQUESTARR_REQUEST_TIMEOUT", ""),
            config.DEFAULT_REQUEST_TIMEOUT_SEC,
        )

        # ---- RUN CONTEXT ----
        self.command = os.environ.get("REQUESTARR_COMMAND", "bootstrap")
        self.csv_path = os.environ.get("REQUESTARR_CSV", "")
        self.playlist = os.environ.get("REQUESTARR_PLAYLIST", "")
        self.create_playlist = _as_bool(
            os.environ.get("REQUESTARR_CREATE_PLAYLIST", "0")
        )
        self.report_path = os.environ.get("REQUESTARR_REPORT_PATH", "")

        # ---- PIPELINE TUNABLES ----
        self.workers = max(
            1, _as_int(os.environ.get("REQUESTARR_WORKERS", ""), config.DEFAULT_WORKERS)
        )
        self.batch_size = _as_int(
            os.environ.get("REQUESTARR_BATCH_SIZE", ""), config.DEFAULT_BATCH_SIZE
        )
        if self.batch_size <= 0:
            raise ConfigError("REQUESTARR_BATCH_SIZE must be a positive integer")

        self.max_attempts = _as_int(
            os.environ.get("REQUESTARR_MAX_ATTEMPTS", ""), config.DEFAULT_MAX_ATTEMPTS
        )
        if self.max_attempts <= 0:
            raise ConfigError("REQUESTARR_MAX_ATTEMPTS must be a positive integer")

        self.backoff_base = _as_float(
            os.environ.get("REQUESTARR_BACKOFF_BASE_SEC", ""),
            config.DEFAULT_BACKOFF_BASE_SEC,
        )
        self.backoff_multiplier = _as_float(
            os.environ.get("REQUESTARR_BACKOFF_MULTIPLIER", ""),
            config.DEFAULT_BACKOFF_MULTIPLIER,
        )
        self.backoff_max = _as_float(
            os.environ.get("REQUESTARR_BACKOFF_MAX_SEC", ""),
            config.DEFAULT_BACKOFF_MAX_SEC,
        )

        self.rate_limit = _as_int(
            os.environ.get("REQUESTARR_RATE_LIMIT", ""), config.DEFAULT_RATE_LIMIT
        )
        self.rate_window = _as_float(
            os.environ.get("REQUESTARR_RATE_WINDOW_SEC", ""),
            config.DEFAULT_RATE_WINDOW_SEC,
        )
        self.run_timeout = _as_float(
            os.environ.get("REQUESTARR_RUN_TIMEOUT_SEC", ""), 0.0
        )

    def require_sync_inputs(self) -> None:
        if not self.csv_path:
            raise ConfigError("Missing request CSV (REQUESTARR_CSV or --csv)")
        if not self.playlist:
            raise ConfigError("Missing target playlist (REQUESTARR_PLAYLIST or --playlist)")
        if self.provider == "spotify":
            missing = [
                name
                for name, value in (
                    ("SPOTIFY_CLIENT_ID", self.spotify_client_id),
                    ("SPOTIFY_CLIENT_SECRET", self.spotify_client_secret),
                )
                if not value
            ]
            if missing:
                raise ConfigError(
                    f"Missing required environment variable(s): {', '.join(missing)}"
                )

    def as_dict(self) -> dict:
        return {
            "Logging": {
                "log_level": self.log_level,
                "log_retention": self.log_retention,
                "verbose": self.verbose,
                "quiet": self.quiet,
            },
            "Run": {
                "command": self.command,
                "provider": self.provider,
                "csv_path": self.csv_path,
                "playlist": self.playlist,
                "create_playlist": self.create_playlist,
                "report_path": self.report_path or "(none)",
            },
            "Pipeline": {
                "workers": self.workers,
                "batch_size": self.batch_size,
                "max_attempts": self.max_attempts,
                "backoff_base": self.backoff_base,
                "backoff_multiplier": self.backoff_multiplier,
                "backoff_max": self.backoff_max,
                "rate_limit": f"{self.rate_limit} / {self.rate_window}s",
                "run_timeout": self.run_timeout or "none",
            },
            "API": {
                "spotify_client_id": "set" if self.spotify_client_id else "missing",
                "spotify_redirect_uri": self.spotify_redirect_uri,
                "request_timeout": self.request_timeout,
            },
        }

    # ---- logging passthrough ----
    @property
    def log_level(self) -> str:
        return self._logging.log_level

    @property
    def log_retention(self) -> int:
        return self._logging.log_retention

    @property
    def verbose(self) -> bool:
        return self._logging.verbose

    @property
    def quiet(self) -> bool:
        return self._logging.quiet

    @property
    def interactive(self) -> bool:
        return self._logging.interactive


_ENV: Optional[Environment] = None


def reset_env_caches() -> None:
    """Invalidate cached views of environment variables."""
    global _ENV
    _ENV = None


def get_env() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = Environment()
    return _ENV
