"""URL helpers for navigation, site listings and tenant derivation."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

_NAVIGABLE_SCHEMES = ("http", "https")


def is_valid_url(url: Any) -> bool:
    """Whether ``url`` is an absolute http(s) URL with a host."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in _NAVIGABLE_SCHEMES and bool(parsed.netloc)


def get_partial_url(full_url: Optional[str]) -> str:
    """Path portion of a URL.

    ``"https://contoso.sharepoint.com/sites/hr"`` becomes ``"/sites/hr"``.
    Relative paths are returned unchanged; unparseable input is returned as
    given.
    """
    if not isinstance(full_url, str) or not full_url:
        return ""
    if full_url.startswith("/"):
        return full_url
    try:
        parsed = urlparse(full_url)
    except ValueError:
        return full_url
    if not parsed.scheme or not parsed.netloc:
        return full_url
    return parsed.path or "/"


def host_of(url: Optional[str]) -> Optional[str]:
    """Lower-cased host name of ``url``, or None."""
    if not isinstance(url, str) or not url:
        return None
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    return host.lower() if host else None
