from __future__ import annotations

from typing import List, Optional

from auth.base import AuthHealthResult
from auth.registry import get_provider, provider_names
from env import get_env


def check(provider_name: Optional[str] = None) -> AuthHealthResult:
    """Health of one provider; defaults to the configured REQUESTARR_PROVIDER."""
    name = provider_name or get_env().provider
    return get_provider(name).health_check()


def check_all() -> List[AuthHealthResult]:
    return [get_provider(name).health_check() for name in provider_names()]
