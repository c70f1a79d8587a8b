from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional, Sequence

from pipeline.models import CandidateTrack, PlaylistSnapshot


class MediaProvider(ABC):
    """
    Abstract interface for streaming providers (Spotify, YouTube, ...).

    Implementations translate provider failures into the pipeline error
    taxonomy (TransientProviderError / PermanentProviderError) and never
    retry on their own; retry and rate limiting belong to the stages.
    """

    name: str
    max_batch_size: int = 1

    # ---- search capability ----

    @abstractmethod
    def search(
        self,
        query: str,
        throttle: Optional[Callable[[], None]] = None,
    ) -> Iterator[CandidateTrack]:
        """
        Lazily yield candidates ordered by provider relevance.

        `throttle` is called before every underlying HTTP request (one per
        result page) so the caller can meter them against its budget.
        """
        raise NotImplementedError

    def compose_query(self, title: str, artist: str = "") -> str:
        """Search text for a request; the artist is left out when empty."""
        title = title.strip()
        artist = artist.strip()
        return f"{title} {artist}" if artist else title

    # ---- playlist capability ----

    @abstractmethod
    def get_tracks(
        self,
        playlist_id: str,
        throttle: Optional[Callable[[], None]] = None,
    ) -> PlaylistSnapshot:
        """All track ids currently on the playlist (throttled per page)."""
        raise NotImplementedError

    @abstractmethod
    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        """Append one batch; returns only once the provider confirmed it."""
        raise NotImplementedError

    # ---- playlist lookup ----

    @abstractmethod
    def find_playlist(self, name: str) -> Optional[str]:
        """Id of the current user's playlist called `name`, if any."""
        raise NotImplementedError

    @abstractmethod
    def create_playlist(self, name: str) -> str:
        """Create a private playlist and return its id."""
        raise NotImplementedError

    def is_valid_track_id(self, value: str) -> bool:
        """Whether a pinned id from the source could name a track on this service."""
        return bool(value.strip())

    def looks_like_playlist_id(self, value: str) -> bool:
        return False

    def normalize_playlist_id(self, value: str) -> str:
        return value.strip()
