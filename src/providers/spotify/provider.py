"""
providers/spotify/provider.py

Spotify Web API adapter (spotipy).

Responsibilities:
- Track search, lazily paged
- Playlist contents, paged
- Adding tracks in batches of up to 100
- Playlist lookup / creation by name
- spotipy / requests / OAuth refresh failures -> pipeline error taxonomy

Does NOT retry or throttle; the stages own that.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, TypeVar

import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

import config
from logger import get_logger
from pipeline.errors import (
    AuthFailure,
    ProviderError,
    TransientProviderError,
    classify_http_status,
)
from pipeline.models import CandidateTrack, PlaylistSnapshot
from providers.base import MediaProvider

logger = get_logger(__name__)
T = TypeVar("T")

_SPOTIFY_ID_RE = re.compile(r"^[A-Za-z0-9]{22}$")
_URI_RE = re.compile(r"^spotify:(track|playlist):([A-Za-z0-9]{22})$")
_URL_RE = re.compile(r"open\.spotify\.com/(?:intl-[a-z-]+/)?(track|playlist)/([A-Za-z0-9]{22})")


# ============================================================
# Id helpers
# ============================================================


def normalize_spotify_id(value: str) -> str:
    """
    Reduce a Spotify URI or open.spotify.com URL to the bare base62 id.
    Anything else is returned stripped and unchanged.
    """
    v = (value or "").strip()
    m = _URI_RE.match(v) or _URL_RE.search(v)
    if m:
        return m.group(2)
    return v


def _quote_field(value: str) -> str:
    return value.replace('"', " ").strip()


# ============================================================
# Error translation
# ============================================================


def _retry_after(headers: Any) -> Optional[float]:
    if not headers:
        return None
    try:
        raw = headers.get("Retry-After") or headers.get("retry-after")
    except AttributeError:
        return None
    try:
        return float(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def translate_error(e: Exception) -> ProviderError:
    if isinstance(e, SpotifyException):
        status = getattr(e, "http_status", None)
        kind = classify_http_status(status)
        msg = getattr(e, "msg", None) or str(e)
        if kind is TransientProviderError:
            return TransientProviderError(
                msg, status=status, retry_after=_retry_after(getattr(e, "headers", None))
            )
        return kind(msg, status=status)

    # token refresh failed mid-run (revoked grant, bad client secret)
    if isinstance(e, SpotifyOauthError):
        return AuthFailure(f"token refresh failed: {e}", status=401)

    if isinstance(e, requests.exceptions.HTTPError):
        status = e.response.status_code if e.response is not None else None
        return classify_http_status(status)(str(e), status=status)

    # timeouts, resets, truncated or undecodable bodies
    if isinstance(e, requests.exceptions.RequestException):
        return TransientProviderError(f"{type(e).__name__}: {e}")

    raise e


def _call(fn: Callable[..., T], *args, **kwargs) -> T:
    try:
        return fn(*args, **kwargs)
    except (SpotifyException, SpotifyOauthError, requests.exceptions.RequestException) as e:
        raise translate_error(e) from e


# ============================================================
# Provider
# ============================================================


class SpotifyProvider(MediaProvider):
    name = "spotify"
    max_batch_size = config.PROVIDER_MAX_BATCH["spotify"]

    def __init__(self, client: spotipy.Spotify) -> None:
        self.sp = client
        self._user_id: Optional[str] = None

    # ---- search ----

    def compose_query(self, title: str, artist: str = "") -> str:
        title = _quote_field(title)
        artist = _quote_field(artist)
        if artist:
            return f'track:"{title}" artist:"{artist}"'
        return f'track:"{title}"'

    def search(
        self,
        query: str,
        throttle: Optional[Callable[[], None]] = None,
    ) -> Iterator[CandidateTrack]:
        limit = config.SPOTIFY_SEARCH_PAGE_SIZE

        for page in range(config.SPOTIFY_SEARCH_MAX_PAGES):
            if throttle:
                throttle()
            resp = _call(self.sp.search, q=query, type="track", limit=limit, offset=page * limit)

            tracks = (resp or {}).get("tracks") or {}
            for item in tracks.get("items") or []:
                cand = self._candidate(item)
                if cand is not None:
                    yield cand

            if not tracks.get("next"):
                return

    @staticmethod
    def _candidate(item: Dict[str, Any]) -> Optional[CandidateTrack]:
        if not isinstance(item, dict) or not item.get("id"):
            return None
        artists = tuple(
            a.get("name", "") for a in item.get("artists") or [] if isinstance(a, dict)
        )
        return CandidateTrack(
            id=item["id"],
            title=item.get("name") or "",
            artist=artists[0] if artists else "",
            artists=artists,
        )

    # ---- playlist ----

    def get_tracks(
        self,
        playlist_id: str,
        throttle: Optional[Callable[[], None]] = None,
    ) -> PlaylistSnapshot:
        ids = []
        offset = 0
        limit = config.SPOTIFY_PLAYLIST_PAGE_SIZE

        while True:
            if throttle:
                throttle()
            page = _call(
                self.sp.playlist_items,
                playlist_id,
                fields="items(track(id,type)),next",
                limit=limit,
                offset=offset,
                additional_types=("track",),
            )
            for item in (page or {}).get("items") or []:
                track = (item or {}).get("track") or {}
                # local files and podcast episodes carry no track id
                if track.get("id") and track.get("type", "track") == "track":
                    ids.append(track["id"])

            if not (page or {}).get("next"):
                break
            offset += limit

        logger.debug(f"Fetched {len(ids)} track id(s) from playlist {playlist_id}")
        return PlaylistSnapshot(ids, playlist_id=playlist_id)

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        if len(track_ids) > self.max_batch_size:
            raise ValueError(
                f"Spotify accepts at most {self.max_batch_size} tracks per call"
            )
        _call(self.sp.playlist_add_items, playlist_id, list(track_ids))

    # ---- playlist lookup ----

    def is_valid_track_id(self, value: str) -> bool:
        return bool(_SPOTIFY_ID_RE.match(normalize_spotify_id(value)))

    def looks_like_playlist_id(self, value: str) -> bool:
        v = value.strip()
        return bool(_URI_RE.match(v) or _URL_RE.search(v) or _SPOTIFY_ID_RE.match(v))

    def normalize_playlist_id(self, value: str) -> str:
        return normalize_spotify_id(value)

    def find_playlist(self, name: str) -> Optional[str]:
        offset = 0
        while True:
            page = _call(self.sp.current_user_playlists, limit=50, offset=offset)
            for item in (page or {}).get("items") or []:
                if item and item.get("name") == name:
                    return item.get("id")
            if not (page or {}).get("next"):
                return None
            offset += 50

    def create_playlist(self, name: str) -> str:
        user = self._current_user_id()
        created = _call(
            self.sp.user_playlist_create,
            user,
            name,
            public=False,
            description="Song requests synced by Requestarr",
        )
        logger.info(f"Created Spotify playlist {name!r} ({created['id']})")
        return created["id"]

    def _current_user_id(self) -> str:
        if self._user_id is None:
            me = _call(self.sp.current_user)
            self._user_id = me["id"]
        return self._user_id
