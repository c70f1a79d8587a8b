from __future__ import annotations

from logger import get_logger
from providers.base import MediaProvider

logger = get_logger(__name__)


class PlaylistNotFound(LookupError):
    """No playlist with that name, and creation was not requested."""


def resolve_playlist_id(api: MediaProvider, name_or_id: str, create: bool = False) -> str:
    """
    Turn a playlist reference into a provider playlist id.

    Ids, URIs and share URLs pass through (normalized). Anything else is
    treated as a playlist name owned by the current user; a missing one is
    created only when `create` is set.
    """
    ref = (name_or_id or "").strip()
    if not ref:
        raise PlaylistNotFound("empty playlist reference")

    if api.looks_like_playlist_id(ref):
        return api.normalize_playlist_id(ref)

    found = api.find_playlist(ref)
    if found:
        logger.debug(f"Playlist {ref!r} -> {found}")
        return found

    if not create:
        raise PlaylistNotFound(
            f"No {api.name} playlist named {ref!r} (pass --create-playlist to create it)"
        )

    return api.create_playlist(ref)
