from __future__ import annotations

import os
from pathlib import Path

# src/env/paths.py -> repo root
PROJECT_ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------
# Writable directories
# ---------------------------------------------------------------------


def _dir_from_env(env_var: str, fallback: str) -> Path:
    """Return `$env_var` (or PROJECT_ROOT/fallback), creating it on demand."""
    raw = os.environ.get(env_var, "").strip()
    path = Path(raw).expanduser().resolve() if raw else PROJECT_ROOT / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def auth_dir() -> Path:
    """OAuth token caches and client secrets."""
    return _dir_from_env("REQUESTARR_AUTH_DIR", "auth")


def out_dir() -> Path:
    return _dir_from_env("REQUESTARR_OUT_DIR", "out")


def auth_token_file(filename: str) -> Path:
    return auth_dir() / filename


def auth_client_secrets_file(filename: str = "client_secret.json") -> Path:
    return auth_dir() / filename


def out_file(name: str) -> Path:
    """Report destination inside the output directory."""
    return out_dir() / name


# ---------------------------------------------------------------------
# Token files
# ---------------------------------------------------------------------


def private_file(path: Path) -> Path:
    """
    Restrict a credential file to the owner (0600) if it exists.

    Chmod is best effort: some filesystems (Windows, network mounts)
    refuse it and the token is still usable.
    """
    if path.exists():
        try:
            os.chmod(path, 0o600)
        except OSError:
            pass
    return path
