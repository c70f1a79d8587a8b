"""
matching.py

Pure candidate-selection helpers.

This module:
- Contains NO I/O
- Contains NO API calls
- Contains NO state

Selection policy, in order:
1. first candidate whose title AND artist equal the request's -> exact-title-artist
2. else first candidate whose title equals the request's      -> fuzzy
3. else no match                                               -> none

Equality is case-insensitive after whitespace/unicode normalization.
Ties are broken by provider relevance order (first wins).
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, Optional, Tuple

from pipeline.models import CandidateTrack, MatchConfidence, RequestRecord


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison.

    - Unicode compatibility form (full-width, ligatures)
    - Case-folded
    - Typographic quotes mapped to ASCII
    - Whitespace collapsed
    """
    if not text:
        return ""

    t = unicodedata.normalize("NFKC", text).casefold()
    t = t.replace("’", "'").replace("‘", "'")
    t = t.replace("“", '"').replace("”", '"')
    return re.sub(r"\s+", " ", t).strip()


def titles_match(requested: str, candidate: str) -> bool:
    return bool(requested) and normalize_text(requested) == normalize_text(candidate)


def artists_match(requested: str, candidate: CandidateTrack) -> bool:
    want = normalize_text(requested)
    if not want:
        return False
    return any(normalize_text(a) == want for a in candidate.all_artists())


def select_candidate(
    record: RequestRecord, candidates: Iterable[CandidateTrack]
) -> Tuple[Optional[CandidateTrack], MatchConfidence]:
    """
    Apply the selection policy to a ranked candidate stream.

    Consumes the stream only as far as needed: it stops at the first exact
    title+artist match. A fuzzy (title-only) hit is remembered while the
    rest of the stream is scanned for an exact one.
    """
    fuzzy: Optional[CandidateTrack] = None

    for cand in candidates:
        if not cand.id or not titles_match(record.title, cand.title):
            continue
        if artists_match(record.artist, cand):
            return cand, MatchConfidence.EXACT_TITLE_ARTIST
        if fuzzy is None:
            fuzzy = cand

    if fuzzy is not None:
        return fuzzy, MatchConfidence.FUZZY

    return None, MatchConfidence.NONE
