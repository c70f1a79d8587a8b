from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

import config
from auth.base import AuthHealthResult, AuthHealthStatus, AuthProvider
from auth.errors import AuthFailed, AuthInvalid
from env import auth_client_secrets_file, auth_token_file, get_env, private_file
from logger import get_logger
from providers.youtube.errors import QUOTA_REASONS, error_reasons, http_status


class YouTubeOAuthProvider(AuthProvider):
    name = "youtube"

    def __init__(self) -> None:
        self._logger = get_logger("auth.youtube")

    def ensure_ready(self) -> None:
        """
        Ensures credentials exist and are valid (refresh if expired; interactive login if needed).
        Persists the token to the auth dir.
        """
        _ = self._load_or_authenticate()

    def build_client(self) -> Any:
        creds = self._load_or_authenticate()
        try:
            return build("youtube", "v3", credentials=creds, cache_discovery=False)
        except (GoogleAuthError, HttpError, OSError) as e:
            self._logger.error(f"Failed to build YouTube client: {e}")
            raise AuthFailed(str(e), provider=self.name) from e

    def health_check(self) -> AuthHealthResult:
        """
        Validates OAuth by making a cheap authenticated request.
        Treats API quota exhaustion as OAuth OK.
        """
        self._logger.info("oauth.check.start")

        try:
            youtube = self.build_client()
            youtube.channels().list(part="id", mine=True, maxResults=1).execute()
        except AuthInvalid as e:
            self._logger.error("oauth.check.auth_invalid", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.AUTH_INVALID,
                message="OAuth INVALID - reauthentication required",
            )
        except HttpError as e:
            if any(r in QUOTA_REASONS for r in error_reasons(e)):
                self._logger.warning("oauth.check.ok_quota_exhausted")
                return AuthHealthResult(
                    provider=self.name,
                    status=AuthHealthStatus.OK_API_QUOTA,
                    message="OAuth OK (API quota exhausted)",
                )
            if http_status(e) == 401:
                return AuthHealthResult(
                    provider=self.name,
                    status=AuthHealthStatus.AUTH_INVALID,
                    message="OAuth INVALID - token rejected",
                )
            self._logger.error("oauth.check.failed", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.FAILED,
                message=f"OAuth check failed (HTTP {http_status(e)})",
            )
        except Exception as e:
            self._logger.error("oauth.check.failed", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.FAILED,
                message="OAuth check failed (unexpected error)",
            )

        self._logger.info("oauth.check.ok")
        return AuthHealthResult(
            provider=self.name,
            status=AuthHealthStatus.OK,
            message="OAuth OK",
        )

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _load_or_authenticate(self) -> Credentials:
        token_path = auth_token_file(config.YOUTUBE_TOKEN_BASENAME)
        secrets_path = auth_client_secrets_file()

        creds: Optional[Credentials] = None

        if token_path.exists():
            try:
                creds = Credentials.from_authorized_user_file(
                    str(token_path),
                    config.YOUTUBE_OAUTH_SCOPES,
                )
                self._logger.debug("Loaded existing OAuth credentials")
            except ValueError as e:
                self._logger.warning(f"Failed to load existing credentials: {e}")
                creds = None

        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            try:
                self._logger.debug("Refreshing expired OAuth token...")
                creds.refresh(Request())
                self._persist_token(token_path, creds)
                return creds
            except GoogleAuthError as e:
                self._logger.error(f"Failed to refresh token: {e}")
                raise AuthInvalid(str(e), provider=self.name) from e

        if not get_env().interactive:
            raise AuthInvalid(
                "No valid YouTube token; run `requestarr auth login youtube` interactively",
                provider=self.name,
            )

        if not secrets_path.exists():
            raise AuthInvalid(
                f"Missing OAuth client secrets file: {secrets_path}",
                provider=self.name,
            )

        try:
            self._logger.debug("Starting OAuth authentication flow...")
            flow = InstalledAppFlow.from_client_secrets_file(
                str(secrets_path),
                config.YOUTUBE_OAUTH_SCOPES,
            )
            creds = flow.run_local_server(port=0)
        except (GoogleAuthError, ValueError, OSError) as e:
            self._logger.error(f"OAuth authentication failed: {e}")
            raise AuthInvalid(str(e), provider=self.name) from e

        self._persist_token(token_path, creds)
        return creds

    def _persist_token(self, token_path: Path, creds: Credentials) -> None:
        try:
            token_path.write_text(creds.to_json(), encoding="utf-8")
            private_file(token_path)
            self._logger.debug("Saved OAuth token")
        except OSError as e:
            self._logger.warning(f"Could not persist OAuth token to {token_path}: {e}")
