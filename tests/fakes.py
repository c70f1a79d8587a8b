"""
In-memory provider used by the pipeline tests. No network.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pipeline.models import CandidateTrack, PlaylistSnapshot
from providers.base import MediaProvider


def track(id, title, artist):
    return CandidateTrack(id=id, title=title, artist=artist, artists=(artist,))


class FakeProvider(MediaProvider):
    """
    Search matches catalog entries whose title appears in the query.

    `search_errors` / `get_errors` / `add_errors` are queues: each call pops
    the head and raises it when it is an exception (None means succeed).
    `after_search` / `after_add` run once each call has gone through.
    """

    name = "fake"

    def __init__(
        self,
        catalog: Iterable[CandidateTrack] = (),
        playlist: Iterable[str] = (),
        *,
        max_batch_size: int = 100,
        search_errors: Sequence[Optional[Exception]] = (),
        get_errors: Sequence[Optional[Exception]] = (),
        add_errors: Sequence[Optional[Exception]] = (),
        playlists: Optional[Dict[str, str]] = None,
        after_search: Optional[Callable[[], None]] = None,
        after_add: Optional[Callable[[], None]] = None,
    ) -> None:
        self.catalog = list(catalog)
        self.playlist: List[str] = list(playlist)
        self.max_batch_size = max_batch_size
        self.search_errors = list(search_errors)
        self.get_errors = list(get_errors)
        self.add_errors = list(add_errors)
        self.playlists = dict(playlists or {})
        self.after_search = after_search
        self.after_add = after_add

        self.search_calls: List[str] = []
        self.get_calls = 0
        self.add_calls: List[List[str]] = []
        self.created: List[str] = []
        self._lock = threading.Lock()

    @staticmethod
    def _pop(queue):
        if queue:
            err = queue.pop(0)
            if err is not None:
                raise err

    def search(self, query: str, throttle: Optional[Callable[[], None]] = None):
        if throttle:
            throttle()
        with self._lock:
            self.search_calls.append(query)
            self._pop(self.search_errors)
        if self.after_search:
            self.after_search()
        q = query.lower()
        for cand in self.catalog:
            if cand.title.lower() in q:
                yield cand

    def get_tracks(self, playlist_id: str, throttle=None) -> PlaylistSnapshot:
        if throttle:
            throttle()
        self.get_calls += 1
        self._pop(self.get_errors)
        return PlaylistSnapshot(self.playlist, playlist_id=playlist_id)

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        assert len(track_ids) <= self.max_batch_size
        self.add_calls.append(list(track_ids))
        self._pop(self.add_errors)
        self.playlist.extend(track_ids)
        if self.after_add:
            self.after_add()

    def find_playlist(self, name: str) -> Optional[str]:
        return self.playlists.get(name)

    def create_playlist(self, name: str) -> str:
        pid = f"new-{len(self.created) + 1}"
        self.created.append(name)
        self.playlists[name] = pid
        return pid

    def looks_like_playlist_id(self, value: str) -> bool:
        return value.startswith("PL")


class FakeClock:
    """Monotonic clock + sleep pair for TokenBucket tests."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
