"""
config.py

Central configuration for Requestarr.

This file intentionally contains ONLY:
- Constants
- Tunable defaults
- CSV column aliases
- OAuth scopes

It must NOT contain:
- Business logic
- API calls
- Reading environment variables
- Validation / side effects

Runtime configuration (env vars) belongs in:
- env/env.py
- requestarr.py (CLI bootstrap)
"""

from __future__ import annotations

from typing import Dict, List, Tuple

# ============================================================
# PROVIDERS
# ============================================================

SUPPORTED_PROVIDERS: Tuple[str, ...] = ("spotify", "youtube")

# Hard caps on tracks per "add tracks" call, per provider.
PROVIDER_MAX_BATCH: Dict[str, int] = {
    "spotify": 100,
    "youtube": 1,
}

# ============================================================
# SPOTIFY — SCOPES / AUTH
# ============================================================

SPOTIFY_OAUTH_SCOPES: List[str] = [
    "playlist-read-private",
    "playlist-modify-private",
    "playlist-modify-public",
]

DEFAULT_SPOTIFY_REDIRECT_URI = "http://127.0.0.1:8888/callback"
SPOTIFY_TOKEN_CACHE_BASENAME = "spotify_token.json"

SPOTIFY_SEARCH_PAGE_SIZE = 10
SPOTIFY_SEARCH_MAX_PAGES = 3
SPOTIFY_PLAYLIST_PAGE_SIZE = 100

# ============================================================
# YOUTUBE — SCOPES / AUTH
# ============================================================

YOUTUBE_OAUTH_SCOPES: List[str] = ["https://www.googleapis.com/auth/youtube"]
YOUTUBE_TOKEN_BASENAME = "youtube_oauth_token.json"
YOUTUBE_PAGE_SIZE = 50
YOUTUBE_SEARCH_MAX_RESULTS = 10
# search.list costs 100 quota units per page
YOUTUBE_SEARCH_MAX_PAGES = 1
YOUTUBE_MUSIC_CATEGORY_ID = "10"

# ============================================================
# REQUEST THROTTLING / RETRY DEFAULTS (env.py may override)
# ============================================================

DEFAULT_REQUEST_TIMEOUT_SEC = 30
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BACKOFF_BASE_SEC = 1.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_BACKOFF_MAX_SEC = 30.0

# Shared token bucket: requests per window
DEFAULT_RATE_LIMIT = 10
DEFAULT_RATE_WINDOW_SEC = 1.0

DEFAULT_WORKERS = 4
DEFAULT_BATCH_SIZE = 100

# HTTP statuses retried as transient
TRANSIENT_HTTP_STATUSES = (408, 429, 500, 502, 503, 504)

# ============================================================
# CSV INPUT
# ============================================================

ARTIST_COLUMNS = ("artist", "artists", "artist name", "artist_name")
TITLE_COLUMNS = ("title", "song", "track", "name", "track name", "track_name")
TRACK_ID_COLUMNS = (
    "track_id",
    "spotify_id",
    "provider_track_id",
    "id",
    "uri",
    "song_id (s)",
)
# DynamoDB export: "Artist - Title" (or just a title)
COMBINED_COLUMNS = ("music (s)",)
COMBINED_SEPARATOR = " - "

# ============================================================
# REPORT
# ============================================================

REPORT_BASENAME = "sync_report_{run_id}.json"

# ============================================================
# YOUTUBE — TITLE CLEANUP
# ============================================================

# Trailing decorations stripped from video titles before matching
YOUTUBE_TITLE_DECORATIONS: List[str] = [
    r"\((official\s+)?(music\s+)?(video|audio|visualizer|lyric\s+video|lyrics)\)",
    r"\[(official\s+)?(music\s+)?(video|audio|visualizer|lyric\s+video|lyrics)\]",
    r"\(official\)",
    r"\[official\]",
    r"\b(hd|hq|4k)\b",
]

# Channel-name suffixes that hide the artist name
YOUTUBE_CHANNEL_SUFFIXES: Tuple[str, ...] = (" - topic", "vevo", " official")
