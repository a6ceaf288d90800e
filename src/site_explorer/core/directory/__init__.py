"""Site directory: search-backed listing of the sites a user can access."""

from site_explorer.core.directory.fetcher import (
    DEFAULT_CACHE_TTL_SECONDS,
    SiteDirectoryFetcher,
)
from site_explorer.core.directory.models import (
    DEFAULT_SITE_TITLE,
    SiteId,
    SiteRecord,
    WebId,
    create_site_id,
    create_web_id,
    is_valid_site,
    is_valid_site_list,
    sort_sites_alphabetically,
)

__all__ = [
    "DEFAULT_CACHE_TTL_SECONDS",
    "DEFAULT_SITE_TITLE",
    "SiteDirectoryFetcher",
    "SiteId",
    "SiteRecord",
    "WebId",
    "create_site_id",
    "create_web_id",
    "is_valid_site",
    "is_valid_site_list",
    "sort_sites_alphabetically",
]
