"""
resolve.py

Track resolution: RequestRecord -> ResolvedTrack.

- Pinned provider ids short-circuit (no search call); ids the provider
  cannot accept are reported as malformed rows.
- Malformed source rows resolve to unresolved without any call.
- Everything else is one (rate limited, retried) search per record.

Resolution failures are local to the record; they never abort the run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from logger import get_logger
from pipeline.cancel import CancelToken
from pipeline.errors import (
    PermanentProviderError,
    RunCancelled,
    TransientProviderError,
    describe,
)
from pipeline.models import MatchConfidence, RequestRecord, ResolvedTrack
from pipeline.rate_limit import TokenBucket
from pipeline.retry import RetryPolicy, execute_with_retry
from providers.base import MediaProvider
from stages.matching import select_candidate

logger = get_logger(__name__)

MALFORMED_DIAGNOSTIC = "malformed source row"
NO_MATCH_DIAGNOSTIC = "no candidate matched title"


class TrackResolver:
    def __init__(
        self,
        provider: MediaProvider,
        bucket: TokenBucket,
        policy: RetryPolicy,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.provider = provider
        self.bucket = bucket
        self.policy = policy
        self.cancel = cancel or CancelToken()

    # ------------------------------------------------------------------
    # Single record
    # ------------------------------------------------------------------

    def resolve(self, record: RequestRecord) -> ResolvedTrack:
        if record.is_malformed:
            detail = f"{MALFORMED_DIAGNOSTIC}: {record.malformed}" if record.malformed else MALFORMED_DIAGNOSTIC
            return ResolvedTrack.unresolved_for(record, detail)

        if record.pinned:
            track_id = record.provider_track_id.strip()
            if not self.provider.is_valid_track_id(track_id):
                logger.warning(
                    f"Not a {self.provider.name} track id for {record.label()}: {track_id!r}"
                )
                return ResolvedTrack.unresolved_for(
                    record, f"{MALFORMED_DIAGNOSTIC}: invalid track id"
                )
            return ResolvedTrack(
                record=record,
                track_id=track_id,
                confidence=MatchConfidence.EXACT_ID,
            )

        if not record.title.strip():
            return ResolvedTrack.unresolved_for(record, f"{MALFORMED_DIAGNOSTIC}: empty title")

        if self.cancel.cancelled:
            return ResolvedTrack.unresolved_for(record, self.cancel.reason)

        query = self.provider.compose_query(record.title, record.artist)

        def _op():
            return select_candidate(
                record, self.provider.search(query, throttle=self._throttle)
            )

        try:
            cand, confidence = execute_with_retry(
                _op,
                self.policy,
                name=f"search {query!r}",
                cancel=self.cancel,
            )
        except RunCancelled as e:
            return ResolvedTrack.unresolved_for(record, e.reason)
        except TransientProviderError as e:
            logger.warning(f"Search gave up for {record.label()}: {e}")
            return ResolvedTrack.unresolved_for(
                record, f"retries exhausted: {describe(e)}"
            )
        except PermanentProviderError as e:
            logger.warning(f"Search rejected for {record.label()}: {e}")
            return ResolvedTrack.unresolved_for(record, describe(e))

        if cand is None:
            logger.debug(f"No match for {record.label()} (query={query!r})")
            return ResolvedTrack.unresolved_for(record, NO_MATCH_DIAGNOSTIC)

        logger.debug(
            f"Resolved {record.label()} -> {cand.id} ({confidence.value}: "
            f"{cand.artist} - {cand.title})"
        )
        return ResolvedTrack(
            record=record,
            track_id=cand.id,
            confidence=confidence,
            diagnostic=None
            if confidence == MatchConfidence.EXACT_TITLE_ARTIST
            else f"matched title only: {cand.artist} - {cand.title}",
        )

    def _throttle(self) -> None:
        self.bucket.acquire(self.cancel)

    # ------------------------------------------------------------------
    # Whole run
    # ------------------------------------------------------------------

    def resolve_all(
        self, records: Sequence[RequestRecord], workers: int = 1
    ) -> List[ResolvedTrack]:
        """
        Resolve every record, preserving input order.

        Searches may run concurrently on up to `workers` threads; the
        shared token bucket still bounds the request rate.
        """
        if workers <= 1 or len(records) <= 1:
            return [self.resolve(r) for r in records]

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="resolve"
        ) as pool:
            # map() yields in submission order regardless of completion order
            return list(pool.map(self.resolve, records))
