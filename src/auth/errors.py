from __future__ import annotations

from typing import Optional

# CLI exit codes for auth problems
EXIT_AUTH_INVALID = 12
EXIT_AUTH_FAILED = 20


class AuthError(Exception):
    """Base auth error for any provider."""

    exit_code = EXIT_AUTH_FAILED

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{self.provider}: {msg}" if self.provider else msg


class AuthInvalid(AuthError):
    """
    No usable credentials: missing client id/secret, no cached token in a
    non-interactive run, or a refresh the provider rejected. Re-login fixes it.
    """

    exit_code = EXIT_AUTH_INVALID


class AuthFailed(AuthError):
    """The client could not be built for a reason other than credentials."""
