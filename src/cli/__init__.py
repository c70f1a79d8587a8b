"""
Requestarr command line.

One module per top-level command (sync, auth, env, logs), each exposing
`build_<command>_parser(subparsers)` and `handle_<command>(args) -> int`,
where the int is the process exit code. `requestarr.py` imports them
lazily so `--help` never touches auth or provider libraries.
"""
from __future__ import annotations

__all__ = [
    "cli_auth",
    "cli_env",
    "cli_logs",
    "cli_sync",
]
