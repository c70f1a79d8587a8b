from __future__ import annotations

import re
from typing import Any, Callable, Iterator, List, Optional, Sequence

import config
from logger import get_logger
from pipeline.models import CandidateTrack, PlaylistSnapshot
from providers.base import MediaProvider
from providers.youtube.errors import call
from providers.youtube.filters import candidate_from_search_item

logger = get_logger(__name__)

_PLAYLIST_ID_RE = re.compile(r"^(PL|UU|LL|FL|OL)[A-Za-z0-9_-]{10,}$")
_PLAYLIST_URL_RE = re.compile(r"[?&]list=([A-Za-z0-9_-]+)")
_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")


class YouTubeProvider(MediaProvider):
    """
    YouTube Data API v3 adapter.

    Track ids are video ids. playlistItems.insert takes exactly one video,
    so batches are always of size 1.
    """

    name = "youtube"
    max_batch_size = config.PROVIDER_MAX_BATCH["youtube"]

    def __init__(self, youtube: Any) -> None:
        self.youtube = youtube

    # ---- search ----

    def search(
        self,
        query: str,
        throttle: Optional[Callable[[], None]] = None,
    ) -> Iterator[CandidateTrack]:
        page_token: Optional[str] = None

        for _ in range(config.YOUTUBE_SEARCH_MAX_PAGES):
            if throttle:
                throttle()

            params = dict(
                part="snippet",
                q=query,
                type="video",
                videoCategoryId=config.YOUTUBE_MUSIC_CATEGORY_ID,
                maxResults=config.YOUTUBE_SEARCH_MAX_RESULTS,
            )
            if page_token:
                params["pageToken"] = page_token

            resp = call(self.youtube.search().list(**params).execute)

            for item in resp.get("items", []):
                cand = candidate_from_search_item(item)
                if cand is not None:
                    yield cand

            page_token = resp.get("nextPageToken")
            if not page_token:
                return

    # ---- playlist ----

    def get_tracks(
        self,
        playlist_id: str,
        throttle: Optional[Callable[[], None]] = None,
    ) -> PlaylistSnapshot:
        ids: List[str] = []
        page_token: Optional[str] = None

        while True:
            if throttle:
                throttle()

            params = dict(
                part="contentDetails",
                playlistId=playlist_id,
                maxResults=config.YOUTUBE_PAGE_SIZE,
            )
            if page_token:
                params["pageToken"] = page_token

            resp = call(self.youtube.playlistItems().list(**params).execute)

            for item in resp.get("items", []):
                vid = (item.get("contentDetails") or {}).get("videoId")
                if vid:
                    ids.append(vid)

            page_token = resp.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Fetched {len(ids)} video id(s) from playlist {playlist_id}")
        return PlaylistSnapshot(ids, playlist_id=playlist_id)

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        if len(track_ids) != 1:
            raise ValueError("YouTube playlistItems.insert takes exactly one video")

        body = {
            "snippet": {
                "playlistId": playlist_id,
                "resourceId": {"kind": "youtube#video", "videoId": track_ids[0]},
            }
        }
        call(self.youtube.playlistItems().insert(part="snippet", body=body).execute)

    # ---- playlist lookup ----

    def is_valid_track_id(self, value: str) -> bool:
        return bool(_VIDEO_ID_RE.match(value.strip()))

    def looks_like_playlist_id(self, value: str) -> bool:
        v = value.strip()
        return bool(_PLAYLIST_ID_RE.match(v) or _PLAYLIST_URL_RE.search(v))

    def normalize_playlist_id(self, value: str) -> str:
        v = value.strip()
        m = _PLAYLIST_URL_RE.search(v)
        return m.group(1) if m else v

    def find_playlist(self, name: str) -> Optional[str]:
        page_token: Optional[str] = None
        while True:
            params = dict(part="snippet", mine=True, maxResults=config.YOUTUBE_PAGE_SIZE)
            if page_token:
                params["pageToken"] = page_token

            resp = call(self.youtube.playlists().list(**params).execute)
            for item in resp.get("items", []):
                if (item.get("snippet") or {}).get("title") == name:
                    return item.get("id")

            page_token = resp.get("nextPageToken")
            if not page_token:
                return None

    def create_playlist(self, name: str) -> str:
        body = {
            "snippet": {
                "title": name,
                "description": "Song requests synced by Requestarr",
            },
            "status": {"privacyStatus": "private"},
        }
        created = call(
            self.youtube.playlists().insert(part="snippet,status", body=body).execute
        )
        logger.info(f"Created YouTube playlist {name!r} ({created['id']})")
        return created["id"]
