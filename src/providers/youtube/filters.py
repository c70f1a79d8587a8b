"""
filters.py

Pure helpers that turn YouTube search results into candidate tracks.

This module:
- Contains NO I/O
- Contains NO API calls
- Contains NO state

Music videos rarely carry clean metadata. The usual shapes are:

    "Artist - Title (Official Video)"   uploaded by "ArtistVEVO"
    "Title"                             uploaded by "Artist - Topic"

All behavior is driven by config.py.
"""

from __future__ import annotations

import html
import re
from typing import Any, Dict, Optional, Tuple

import config
from pipeline.models import CandidateTrack

_DECORATIONS = [re.compile(p, re.IGNORECASE) for p in config.YOUTUBE_TITLE_DECORATIONS]


# ============================================================
# Channel / title cleanup
# ============================================================


def clean_channel_name(channel: str) -> str:
    """
    Strip the suffixes YouTube adds to artist channels.

    Examples:
        >>> clean_channel_name("Daft Punk - Topic")
        'Daft Punk'
        >>> clean_channel_name("AdeleVEVO")
        'Adele'
    """
    if not channel:
        return ""

    name = channel.strip()
    lowered = name.lower()
    for suffix in config.YOUTUBE_CHANNEL_SUFFIXES:
        if lowered.endswith(suffix):
            name = name[: len(name) - len(suffix)]
            lowered = name.lower()
    return name.strip()


def strip_decorations(title: str) -> str:
    """Remove '(Official Video)' style noise and collapse whitespace."""
    t = title or ""
    for pattern in _DECORATIONS:
        t = pattern.sub(" ", t)
    return re.sub(r"\s+", " ", t).strip(" -|")


def split_video_title(title: str) -> Tuple[Optional[str], str]:
    """
    Split "Artist - Title" on the first separator.

    Returns (artist or None, title), both cleaned.
    """
    raw = html.unescape(title or "")
    if config.COMBINED_SEPARATOR in raw:
        artist, rest = raw.split(config.COMBINED_SEPARATOR, 1)
        return artist.strip() or None, strip_decorations(rest)
    return None, strip_decorations(raw)


# ============================================================
# Search result -> candidate
# ============================================================


def candidate_from_search_item(item: Dict[str, Any]) -> Optional[CandidateTrack]:
    """
    Build a CandidateTrack from a search.list item.

    Non-video results (channels, playlists) yield None.
    """
    vid = (item.get("id") or {}).get("videoId")
    if not vid:
        return None

    snippet = item.get("snippet") or {}
    artist, title = split_video_title(snippet.get("title", ""))
    channel = clean_channel_name(html.unescape(snippet.get("channelTitle", "")))

    artists = tuple(a for a in (artist, channel) if a)
    return CandidateTrack(
        id=vid,
        title=title,
        artist=artists[0] if artists else "",
        artists=artists,
    )
