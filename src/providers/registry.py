from __future__ import annotations

from typing import Callable, Dict

from auth.registry import get_provider as get_auth_provider
from providers.base import MediaProvider
from providers.spotify.provider import SpotifyProvider
from providers.youtube.provider import YouTubeProvider

_FACTORIES: Dict[str, Callable[[object], MediaProvider]] = {
    "spotify": SpotifyProvider,
    "youtube": YouTubeProvider,
}


def build_provider(name: str) -> MediaProvider:
    """
    Authenticated MediaProvider for `name`.

    Auth errors (AuthInvalid / AuthFailed) propagate to the caller.
    """
    key = (name or "").strip().lower()
    if key not in _FACTORIES:
        raise ValueError(f"Unknown provider: {name}")

    client = get_auth_provider(key).build_client()
    return _FACTORIES[key](client)
