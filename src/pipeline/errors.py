from __future__ import annotations

from typing import Optional, Type

import config


class ProviderError(Exception):
    """Base class for failures reported by a streaming provider."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class TransientProviderError(ProviderError):
    """Rate limit, timeout or server error; a retry may succeed."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message, status=status)
        self.retry_after = retry_after


class PermanentProviderError(ProviderError):
    """Bad request, not found, forbidden; retrying will not help."""


class AuthFailure(PermanentProviderError):
    """Credentials rejected by the provider."""


class MalformedRecord(ValueError):
    """A source row that could not be turned into a request."""


class RunCancelled(Exception):
    """The run was interrupted between safe boundaries."""

    def __init__(self, reason: str = "run-cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


def classify_http_status(status: Optional[int]) -> Type[ProviderError]:
    """
    Map an HTTP status onto the error taxonomy.

    No status at all (connection reset, DNS, read timeout) counts as transient.
    """
    if status is None or status in config.TRANSIENT_HTTP_STATUSES or status >= 500:
        return TransientProviderError
    if status == 401:
        return AuthFailure
    return PermanentProviderError


def describe(exc: BaseException) -> str:
    """One-line diagnostic for an outcome report."""
    name = type(exc).__name__
    status = getattr(exc, "status", None)
    msg = str(exc).strip().replace("\n", " ")
    if len(msg) > 300:
        msg = msg[:297] + "..."
    if status:
        return f"{name} (HTTP {status}): {msg}"
    return f"{name}: {msg}" if msg else name
