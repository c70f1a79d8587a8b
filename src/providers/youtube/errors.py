"""
errors.py

googleapiclient HttpError -> pipeline error taxonomy.

YouTube signals most problems as 403 with a reason code, so the HTTP
status alone is not enough:

- quotaExceeded / dailyLimitExceeded  -> permanent (quota resets daily)
- rateLimitExceeded / userRateLimitExceeded -> transient
- 401 or a failed token refresh -> AuthFailure
- no response at all (httplib2, socket, google-auth transport) -> transient
- everything else -> by status
"""

from __future__ import annotations

import json
import socket
from typing import Any, Callable, Iterable, Optional, TypeVar

import httplib2
import requests
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from logger import get_logger
from pipeline.errors import (
    AuthFailure,
    PermanentProviderError,
    ProviderError,
    TransientProviderError,
    classify_http_status,
)

logger = get_logger(__name__)
T = TypeVar("T")

QUOTA_REASONS = ("quotaExceeded", "dailyLimitExceeded")
RATE_REASONS = ("rateLimitExceeded", "userRateLimitExceeded")

# No HTTP response at all; the request may be retried
_TRANSPORT_ERRORS = (
    socket.timeout,
    ConnectionError,
    httplib2.HttpLib2Error,
    TransportError,
    requests.exceptions.RequestException,
)


# ============================================================
# Error detection helpers
# ============================================================


def _reasons(payload: Any) -> Iterable[str]:
    if not isinstance(payload, dict):
        return []
    errors = (payload.get("error") or {}).get("errors") or []
    return [e.get("reason", "") for e in errors if isinstance(e, dict)]


def error_reasons(e: HttpError) -> list:
    """
    Reason codes from an HttpError.

    googleapiclient sometimes parses them into error_details, sometimes
    leaves the JSON body in e.content.
    """
    found = []

    details = getattr(e, "error_details", None)
    if isinstance(details, list):
        found.extend(d.get("reason", "") for d in details if isinstance(d, dict))

    content = getattr(e, "content", b"") or b""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="ignore")
    if content:
        try:
            found.extend(_reasons(json.loads(content)))
        except ValueError:
            pass

    return [r for r in found if r]


def http_status(e: HttpError) -> Optional[int]:
    status = getattr(getattr(e, "resp", None), "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _retry_after(e: HttpError) -> Optional[float]:
    resp = getattr(e, "resp", None)
    if resp is None:
        return None
    try:
        raw = resp.get("retry-after")
    except AttributeError:
        return None
    try:
        return float(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def translate_error(e: Exception) -> ProviderError:
    if isinstance(e, HttpError):
        status = http_status(e)
        reasons = error_reasons(e)
        msg = f"{', '.join(reasons) or 'HttpError'}: {getattr(e, 'reason', '') or e}"

        if any(r in QUOTA_REASONS for r in reasons):
            logger.warning("YouTube API quota exhausted")
            return PermanentProviderError(f"quota exhausted ({msg})", status=status)

        if any(r in RATE_REASONS for r in reasons):
            return TransientProviderError(msg, status=status, retry_after=_retry_after(e))

        kind = classify_http_status(status)
        if kind is TransientProviderError:
            return TransientProviderError(msg, status=status, retry_after=_retry_after(e))
        return kind(msg, status=status)

    # token refresh failed mid-run (revoked or expired grant)
    if isinstance(e, RefreshError):
        return AuthFailure(f"token refresh failed: {e}", status=401)

    if isinstance(e, _TRANSPORT_ERRORS):
        return TransientProviderError(f"{type(e).__name__}: {e}")

    raise e


def call(fn: Callable[[], T]) -> T:
    """Run one API request (usually `request.execute`) with translated errors."""
    try:
        return fn()
    except (HttpError, RefreshError) + _TRANSPORT_ERRORS as e:
        raise translate_error(e) from e
