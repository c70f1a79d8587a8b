from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from logger import get_logger
from pipeline.models import (
    PendingTrack,
    PlaylistSnapshot,
    ResolvedTrack,
    SyncOutcome,
    SyncStatus,
)

logger = get_logger(__name__)

IN_PLAYLIST_DIAGNOSTIC = "already on playlist"
DUPLICATE_DIAGNOSTIC = "duplicate of row {row} in this run"


@dataclass
class DedupResult:
    """Survivors in input order plus terminal outcomes keyed by input index."""

    pending: List[PendingTrack] = field(default_factory=list)
    skipped: Dict[int, SyncOutcome] = field(default_factory=dict)


def dedup(resolved: Sequence[ResolvedTrack], snapshot: PlaylistSnapshot) -> DedupResult:
    """
    Drop unresolved tracks, tracks already on the playlist, and repeats
    within this run (first occurrence wins). Order is preserved.
    """
    result = DedupResult()
    first_seen: Dict[str, int] = {}

    for index, item in enumerate(resolved):
        if item.unresolved:
            result.skipped[index] = SyncOutcome(
                record=item.record,
                status=SyncStatus.UNRESOLVED,
                confidence=item.confidence,
                diagnostic=item.diagnostic,
            )
            continue

        track_id = item.track_id
        if track_id in snapshot:
            result.skipped[index] = SyncOutcome(
                record=item.record,
                status=SyncStatus.ALREADY_PRESENT,
                track_id=track_id,
                confidence=item.confidence,
                diagnostic=IN_PLAYLIST_DIAGNOSTIC,
            )
            continue

        if track_id in first_seen:
            earlier = resolved[first_seen[track_id]].record
            row = earlier.row if earlier.row is not None else first_seen[track_id] + 1
            result.skipped[index] = SyncOutcome(
                record=item.record,
                status=SyncStatus.ALREADY_PRESENT,
                track_id=track_id,
                confidence=item.confidence,
                diagnostic=DUPLICATE_DIAGNOSTIC.format(row=row),
            )
            continue

        first_seen[track_id] = index
        result.pending.append(
            PendingTrack(
                index=index,
                record=item.record,
                track_id=track_id,
                confidence=item.confidence,
            )
        )

    logger.debug(
        f"Dedup: {len(result.pending)} to submit, {len(result.skipped)} skipped "
        f"(snapshot size {len(snapshot)})"
    )
    return result
