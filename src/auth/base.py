from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from auth.errors import EXIT_AUTH_FAILED, EXIT_AUTH_INVALID


class AuthHealthStatus(str, Enum):
    OK = "ok"
    # token works but the API refused on quota; credentials are fine
    OK_API_QUOTA = "ok_api_quota"
    AUTH_INVALID = "auth_invalid"
    FAILED = "failed"

    @property
    def healthy(self) -> bool:
        return self in (AuthHealthStatus.OK, AuthHealthStatus.OK_API_QUOTA)


@dataclass(frozen=True)
class AuthHealthResult:
    provider: str
    status: AuthHealthStatus
    message: str

    @property
    def exit_code(self) -> int:
        """CLI exit code for this result (0 when usable)."""
        if self.status.healthy:
            return 0
        if self.status is AuthHealthStatus.AUTH_INVALID:
            return EXIT_AUTH_INVALID
        return EXIT_AUTH_FAILED


class AuthProvider(Protocol):
    """
    Credential handling for one streaming service.

    ensure_ready() may open a browser, so only `auth login` and interactive
    runs call it. build_client() hands the authenticated spotipy.Spotify or
    googleapiclient Resource to the matching MediaProvider. health_check()
    makes a single cheap authenticated request.
    """

    name: str

    def ensure_ready(self) -> None: ...

    def build_client(self) -> Any: ...

    def health_check(self) -> AuthHealthResult: ...
