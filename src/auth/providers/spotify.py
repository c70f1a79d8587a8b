from __future__ import annotations

from typing import Any

from spotipy import Spotify
from spotipy.cache_handler import CacheFileHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

import config
from auth.base import AuthHealthResult, AuthHealthStatus, AuthProvider
from auth.errors import AuthFailed, AuthInvalid
from env import auth_token_file, get_env, private_file
from logger import get_logger


class SpotifyOAuthProvider(AuthProvider):
    """
    Spotify authorization-code flow via spotipy.

    The token cache lives in the auth dir. Without a cached token a
    non-interactive run fails with AuthInvalid instead of blocking on a
    browser prompt; run `requestarr auth login spotify` once from a terminal.
    """

    name = "spotify"

    def __init__(self) -> None:
        self._logger = get_logger("auth.spotify")

    def ensure_ready(self) -> None:
        oauth = self._oauth_manager()
        try:
            oauth.get_access_token(as_dict=False)
        except SpotifyOauthError as e:
            self._logger.error(f"Spotify authorization failed: {e}")
            raise AuthInvalid(str(e), provider=self.name) from e
        private_file(auth_token_file(config.SPOTIFY_TOKEN_CACHE_BASENAME))

    def build_client(self) -> Any:
        env = get_env()
        oauth = self._oauth_manager()

        cached = oauth.cache_handler.get_cached_token()
        if not cached and not env.interactive:
            raise AuthInvalid(
                "No cached Spotify token; run `requestarr auth login spotify` interactively",
                provider=self.name,
            )

        try:
            token = oauth.validate_token(cached) if cached else None
        except SpotifyOauthError as e:
            self._logger.error(f"Failed to refresh Spotify token: {e}")
            raise AuthInvalid(str(e), provider=self.name) from e

        if cached and not token and not env.interactive:
            raise AuthInvalid(
                "Cached Spotify token is no longer valid; log in again",
                provider=self.name,
            )

        private_file(auth_token_file(config.SPOTIFY_TOKEN_CACHE_BASENAME))
        return Spotify(
            auth_manager=oauth,
            requests_timeout=env.request_timeout,
            # retries belong to the sync pipeline
            retries=0,
            status_retries=0,
        )

    def health_check(self) -> AuthHealthResult:
        self._logger.info("oauth.check.start")

        try:
            sp = self.build_client()
            me = sp.current_user()
        except AuthInvalid as e:
            self._logger.error("oauth.check.auth_invalid", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.AUTH_INVALID,
                message="OAuth INVALID - reauthentication required",
            )
        except SpotifyException as e:
            if e.http_status == 401:
                return AuthHealthResult(
                    provider=self.name,
                    status=AuthHealthStatus.AUTH_INVALID,
                    message="OAuth INVALID - token rejected",
                )
            self._logger.error("oauth.check.failed", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.FAILED,
                message=f"OAuth check failed (HTTP {e.http_status})",
            )
        except (AuthFailed, SpotifyOauthError, OSError) as e:
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
            message=f"OAuth OK ({me.get('display_name') or me.get('id')})",
        )

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _oauth_manager(self) -> SpotifyOAuth:
        env = get_env()
        if not env.spotify_client_id or not env.spotify_client_secret:
            raise AuthInvalid(
                "Missing SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET "
                "(create an app at https://developer.spotify.com/dashboard)",
                provider=self.name,
            )

        cache_path = auth_token_file(config.SPOTIFY_TOKEN_CACHE_BASENAME)
        return SpotifyOAuth(
            client_id=env.spotify_client_id,
            client_secret=env.spotify_client_secret,
            redirect_uri=env.spotify_redirect_uri,
            scope=config.SPOTIFY_OAUTH_SCOPES,
            cache_handler=CacheFileHandler(cache_path=str(cache_path)),
            open_browser=env.interactive,
        )
