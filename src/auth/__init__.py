"""
Authenticated sessions for the streaming providers.

`get_provider(name).build_client()` yields the raw API client that
`providers.registry` wraps; `check()` makes one cheap authenticated call.
"""

from __future__ import annotations

from auth.base import AuthHealthResult, AuthHealthStatus, AuthProvider
from auth.errors import (
    EXIT_AUTH_FAILED,
    EXIT_AUTH_INVALID,
    AuthError,
    AuthFailed,
    AuthInvalid,
)
from auth.health import check, check_all
from auth.registry import get_provider, provider_names

__all__ = [
    "EXIT_AUTH_FAILED",
    "EXIT_AUTH_INVALID",
    "AuthError",
    "AuthFailed",
    "AuthHealthResult",
    "AuthHealthStatus",
    "AuthInvalid",
    "AuthProvider",
    "check",
    "check_all",
    "get_provider",
    "provider_names",
]
