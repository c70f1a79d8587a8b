"""
pipeline/models.py

Value types flowing through a sync run:

    RequestRecord -> ResolvedTrack -> PendingTrack -> SyncOutcome

All of them are immutable. A run owns exactly one PlaylistSnapshot,
fetched at the start and never refreshed mid-run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple


class MatchConfidence(str, Enum):
    EXACT_ID = "exact-id"
    EXACT_TITLE_ARTIST = "exact-title-artist"
    FUZZY = "fuzzy"
    NONE = "none"


class SyncStatus(str, Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already-present"
    UNRESOLVED = "unresolved"
    SUBMISSION_FAILED = "submission-failed"

    @property
    def is_failure(self) -> bool:
        return self in (SyncStatus.UNRESOLVED, SyncStatus.SUBMISSION_FAILED)


@dataclass(frozen=True)
class RequestRecord:
    title: str
    artist: str = ""
    provider_track_id: Optional[str] = None
    # 1-based data row in the source, for reporting
    row: Optional[int] = None
    # Set by the source when the row could not be parsed
    malformed: Optional[str] = None

    @property
    def is_malformed(self) -> bool:
        return self.malformed is not None

    @property
    def pinned(self) -> bool:
        return bool(self.provider_track_id and self.provider_track_id.strip())

    def label(self) -> str:
        if self.artist:
            return f"{self.artist} - {self.title}"
        return self.title or (self.provider_track_id or "<empty>")


@dataclass(frozen=True)
class CandidateTrack:
    id: str
    title: str
    artist: str
    # Every credited artist; `artist` is the primary one.
    artists: Tuple[str, ...] = ()

    def all_artists(self) -> Tuple[str, ...]:
        return self.artists or ((self.artist,) if self.artist else ())


@dataclass(frozen=True)
class ResolvedTrack:
    record: RequestRecord
    track_id: Optional[str]
    confidence: MatchConfidence
    diagnostic: Optional[str] = None

    @property
    def unresolved(self) -> bool:
        return self.track_id is None

    @classmethod
    def unresolved_for(cls, record: RequestRecord, diagnostic: str) -> ResolvedTrack:
        return cls(
            record=record,
            track_id=None,
            confidence=MatchConfidence.NONE,
            diagnostic=diagnostic,
        )


@dataclass(frozen=True)
class PendingTrack:
    """A unique, not-yet-present track waiting for submission."""

    index: int
    record: RequestRecord
    track_id: str
    confidence: MatchConfidence = MatchConfidence.NONE


@dataclass(frozen=True)
class SyncOutcome:
    record: RequestRecord
    status: SyncStatus
    track_id: Optional[str] = None
    confidence: MatchConfidence = MatchConfidence.NONE
    diagnostic: Optional[str] = None


class PlaylistSnapshot:
    """
    Track ids on the target playlist at run start.

    Membership is set-based; iteration keeps the provider's order.
    """

    __slots__ = ("playlist_id", "_order", "_members")

    def __init__(self, track_ids: Iterable[str] = (), playlist_id: str = "") -> None:
        self.playlist_id = playlist_id
        # dict preserves first-seen order and drops repeats
        self._order: Tuple[str, ...] = tuple(
            dict.fromkeys(t for t in track_ids if t)
        )
        self._members = frozenset(self._order)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"PlaylistSnapshot(playlist_id={self.playlist_id!r}, size={len(self)})"
