"""Session context shared by the remote-data services.

Holds the current web/site URLs and the bearer token, and builds HTTP clients
with authentication attached. Clients are created per request
(``async with session.client(...) as client``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import httpx

DEFAULT_USER_AGENT = "site-explorer"


@dataclass(frozen=True)
class SessionContext:
    """Identity and location of the current user session.

    Attributes:
        web_url: Absolute URL of the current web (search API root)
        site_url: Absolute URL of the current site collection; defaults to
            ``web_url``
        access_token: Bearer token attached to every request, if any
        user_agent: User-Agent header value
    """

    web_url: str
    site_url: Optional[str] = None
    access_token: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "web_url", self.web_url.rstrip("/"))
        site = (self.site_url or self.web_url).rstrip("/")
        object.__setattr__(self, "site_url", site)

    def auth_headers(self) -> Dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def client(self, timeout: float) -> httpx.AsyncClient:
        """Create an authenticated client; use as an async context manager."""
        return httpx.AsyncClient(timeout=timeout, headers=self.auth_headers())

    def __repr__(self) -> str:
        token = "****" if self.access_token else None
        return (
            f"SessionContext(web_url={self.web_url!r}, site_url={self.site_url!r}, "
            f"access_token={token!r})"
        )
