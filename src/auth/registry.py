from __future__ import annotations

from typing import Callable, Dict, List

from auth.base import AuthProvider


def _spotify() -> AuthProvider:
    from auth.providers.spotify import SpotifyOAuthProvider

    return SpotifyOAuthProvider()


def _youtube() -> AuthProvider:
    from auth.providers.youtube import YouTubeOAuthProvider

    return YouTubeOAuthProvider()


# Factories stay lazy so a Spotify run never imports the Google stack.
_FACTORIES: Dict[str, Callable[[], AuthProvider]] = {
    "spotify": _spotify,
    "youtube": _youtube,
}
_INSTANCES: Dict[str, AuthProvider] = {}


def get_provider(name: str) -> AuthProvider:
    key = (name or "").strip().lower()
    if key not in _FACTORIES:
        raise ValueError(
            f"Unknown auth provider: {name} (expected one of {', '.join(provider_names())})"
        )
    if key not in _INSTANCES:
        _INSTANCES[key] = _FACTORIES[key]()
    return _INSTANCES[key]


def provider_names() -> List[str]:
    return sorted(_FACTORIES)
