from __future__ import annotations

from sizetree.domain.constants import APP_VERSION

USER_AGENT = f"SizeTree-Client/{APP_VERSION}"
DEFAULT_TIMEOUT = 10

HTTP_SCHEMES = ("http://", "https://")


def is_url(location: str) -> bool:
    """True when `location` should be fetched over HTTP rather than read from disk."""
    return location.lower().startswith(HTTP_SCHEMES)
