"""Site directory fetcher.

Queries the search API for the sites the current user can access and keeps
the result in a short-lived in-memory cache.

Resilience rules:
    - A fresh, structurally valid cache entry is returned without I/O
    - One search request per refresh, under the deadline guard; concurrent
      callers share the in-flight refresh
    - NETWORK failures fall back to the last valid cache entry of any age
    - PERMISSION and VALIDATION failures are never masked by the cache
"""

from __future__ import annotations

import asyncio
import logging
import time
import webbrowser
from typing import Any, Callable, List, Optional

from site_explorer.core.cache import CacheEntry, FreshnessPolicy
from site_explorer.core.classifier import classify_error, extract_error_message
from site_explorer.core.deadline import DEFAULT_TIMEOUT_SECONDS, with_timeout
from site_explorer.core.directory.models import SiteRecord, is_valid_site_list
from site_explorer.core.directory.parsing import (
    DEFAULT_ROW_LIMIT,
    SEARCH_HEADERS,
    SEARCH_POSTQUERY_PATH,
    build_search_request,
    extract_rows,
    process_search_rows,
)
from site_explorer.core.errors.base import ErrorCategory, RemoteApiError
from site_explorer.core.errors.directory import (
    SiteDirectoryError,
    SiteNetworkError,
    SitePermissionError,
    SiteValidationError,
)
from site_explorer.core.redaction import redact_headers, redact_secrets
from site_explorer.core.session import SessionContext
from site_explorer.core.urls import is_valid_url

logger = logging.getLogger(__name__)

# Cache lifetime for the site list (seconds)
DEFAULT_CACHE_TTL_SECONDS = 5 * 60

FETCH_SITES_FAILED = "Failed to fetch sites."
FETCH_SITES_PERMISSIONS = "Unable to fetch sites. Please check your permissions and try again."
FETCH_SITES_NETWORK = "Unable to fetch sites. Please check your network connection and try again."

Navigator = Callable[[str, bool], Any]


def _browser_navigator(url: str, open_in_new_tab: bool) -> None:
    webbrowser.open(url, new=2 if open_in_new_tab else 0)


def _search_error_detail(response: Any) -> str:
    """Error text from a failed search response.

    The search API reports ``{"error": {"message": {"value": ...}}}``; other
    shapes fall back to the raw body.
    """
    try:
        data = response.json()
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, dict) and message.get("value"):
                return redact_secrets(str(message["value"]))
            if isinstance(message, str) and message:
                return redact_secrets(message)
    except Exception:
        pass
    text = response.text[:200] if response.text else "Unknown error"
    return redact_secrets(text)


class SiteDirectoryFetcher:
    """Fetches and caches the sites the current user can access.

    Example:
        fetcher = SiteDirectoryFetcher(SessionContext("https://contoso.sharepoint.com"))
        sites = await fetcher.get_sites()
    """

    def __init__(
        self,
        session: SessionContext,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        row_limit: int = DEFAULT_ROW_LIMIT,
        clock: Callable[[], float] = time.time,
        navigator: Optional[Navigator] = None,
    ):
        self._session = session
        self._timeout = timeout
        self._row_limit = row_limit
        self._clock = clock
        self._navigator = navigator or _browser_navigator
        self._policy = FreshnessPolicy(ttl_seconds=cache_ttl)
        self._cache: Optional[CacheEntry[List[SiteRecord]]] = None
        self._in_flight: Optional["asyncio.Future[List[SiteRecord]]"] = None
        # Bumped by clear_cache; a refresh started under an older generation
        # must not write its result
        self._generation = 0

    @property
    def search_url(self) -> str:
        return f"{self._session.web_url}{SEARCH_POSTQUERY_PATH}"

    # =========================================================================
    # Public API
    # =========================================================================

    async def get_sites(self) -> List[SiteRecord]:
        """Return the user's sites, from cache when fresh.

        Returns:
            A new list of site records (callers may mutate it freely)

        Raises:
            SitePermissionError: The user may not query sites
            SiteNetworkError: Network failure and no usable cached list
            SiteValidationError: The response did not have the expected shape
            SiteDirectoryError: Any other failure
        """
        now = self._clock()
        cached = self._get_valid_cached_sites(now)
        if cached is not None:
            logger.debug("Returning %d cached sites", len(cached))
            return list(cached)

        if self._in_flight is None:
            task = asyncio.ensure_future(self._refresh(now, self._generation))
            self._in_flight = task
            task.add_done_callback(self._release_in_flight)
        else:
            logger.debug("Joining in-flight site refresh")
        sites = await asyncio.shield(self._in_flight)
        return list(sites)

    def clear_cache(self) -> None:
        """Drop the cached list; the next ``get_sites`` hits the network.

        A refresh already in flight is detached: its callers still receive
        its result, but it is not cached and later callers start a new fetch.
        """
        self._cache = None
        self._in_flight = None
        self._generation += 1

    def navigate_to_site(self, url: str, open_in_new_tab: bool = False) -> bool:
        """Open ``url`` with the navigator.

        Invalid URLs and navigator failures are logged, never raised.

        Returns:
            True if navigation was handed to the navigator
        """
        if not isinstance(url, str) or not url.strip():
            return False
        target = url.strip()
        if not is_valid_url(target):
            logger.warning("Invalid URL provided for navigation: %s", target)
            return False
        try:
            self._navigator(target, open_in_new_tab)
        except Exception as exc:
            logger.error("Error navigating to %s: %s", target, exc)
            return False
        return True

    # =========================================================================
    # Cache
    # =========================================================================

    def _get_valid_cached_sites(self, now: float) -> Optional[List[SiteRecord]]:
        entry = self._cache
        if entry is None or not self._policy.is_fresh(entry, now):
            return None
        if is_valid_site_list(entry.value):
            return entry.value
        logger.warning("Cached site list failed validation; clearing cache")
        self.clear_cache()
        return None

    def _stale_sites(self) -> Optional[List[SiteRecord]]:
        entry = self._cache
        if entry is not None and is_valid_site_list(entry.value):
            return entry.value
        return None

    # =========================================================================
    # Refresh
    # =========================================================================

    def _release_in_flight(self, task: "asyncio.Future[List[SiteRecord]]") -> None:
        if self._in_flight is task:
            self._in_flight = None
        if not task.cancelled():
            task.exception()

    async def _refresh(self, now: float, generation: int) -> List[SiteRecord]:
        try:
            return await self._fetch_and_cache(now, generation)
        except Exception as exc:
            return self._handle_fetch_failure(exc)

    async def _fetch_and_cache(self, now: float, generation: int) -> List[SiteRecord]:
        sites = await with_timeout(
            self._fetch_from_search(),
            timeout=self._timeout,
            message="Search API request timed out",
        )
        if not is_valid_site_list(sites):
            raise SiteValidationError(
                "Search API returned an invalid site list",
                field="sites",
                value=sites,
                api_endpoint=self.search_url,
                context="get_sites",
            )
        if generation != self._generation:
            logger.debug("Cache cleared during refresh; not caching %d sites", len(sites))
            return sites
        self._cache = CacheEntry(value=sites, cached_at=now)
        logger.info("Cached %d sites", len(sites))
        return sites

    async def _fetch_from_search(self) -> List[SiteRecord]:
        search_url = self.search_url
        logger.debug(
            "POST %s headers=%s", search_url, redact_headers(self._session.auth_headers())
        )

        async with self._session.client(timeout=self._timeout) as client:
            response = await client.post(
                search_url,
                json=build_search_request(self._row_limit),
                headers=SEARCH_HEADERS,
            )

        if response.status_code >= 400:
            detail = _search_error_detail(response)
            raise RemoteApiError(
                f"Search API request failed ({response.status_code}): {detail}",
                status_code=response.status_code,
                api_endpoint=search_url,
                context="fetch_from_search",
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise SiteValidationError(
                "Search API returned a response that is not valid JSON",
                field="response",
                api_endpoint=search_url,
                original_error=exc,
            ) from exc

        rows = extract_rows(data, search_url)
        logger.info("Search API returned %d rows", len(rows))
        return process_search_rows(rows)

    def _handle_fetch_failure(self, exc: Exception) -> List[SiteRecord]:
        """Substitute the stale cache or raise the user-facing error."""
        category = classify_error(exc)
        detail = redact_secrets(extract_error_message(exc))
        logger.error(
            "Site fetch failed (category=%s, site=%s, web=%s, api=%s): %s",
            category.value,
            self._session.site_url,
            self._session.web_url,
            self.search_url,
            detail,
        )

        if category is ErrorCategory.NETWORK:
            stale = self._stale_sites()
            if stale is not None:
                logger.warning("Serving %d stale cached sites after network failure", len(stale))
                return stale
            raise SiteNetworkError(
                FETCH_SITES_NETWORK,
                status_code=getattr(exc, "status_code", None),
                api_endpoint=self.search_url,
                original_error=exc,
                context="get_sites",
            ) from exc

        if category is ErrorCategory.PERMISSION:
            raise SitePermissionError(
                FETCH_SITES_PERMISSIONS,
                api_endpoint=self.search_url,
                original_error=exc,
                context="get_sites",
            ) from exc

        message = f"{FETCH_SITES_FAILED} Details: {detail}" if detail else FETCH_SITES_FAILED
        if category is ErrorCategory.VALIDATION:
            raise SiteValidationError(
                message,
                api_endpoint=self.search_url,
                original_error=exc,
                context="get_sites",
            ) from exc
        raise SiteDirectoryError(
            message,
            api_endpoint=self.search_url,
            category=ErrorCategory.UNKNOWN,
            original_error=exc,
            context="get_sites",
        ) from exc
