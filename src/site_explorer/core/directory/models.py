"""Site record model and structural validation helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, NewType, Optional, Sequence

SiteId = NewType("SiteId", str)
WebId = NewType("WebId", str)

DEFAULT_SITE_TITLE = "Untitled Site"


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def create_site_id(value: Any) -> SiteId:
    """Brand a raw value as a ``SiteId``; invalid input yields an empty id."""
    return SiteId(value.strip()) if _non_empty_str(value) else SiteId("")


def create_web_id(value: Any) -> Optional[WebId]:
    """Brand a raw value as a ``WebId``; invalid input yields None."""
    return WebId(value.strip()) if _non_empty_str(value) else None


@dataclass(frozen=True)
class SiteRecord:
    """A site the current user can access.

    Attributes:
        id: Site collection identifier (non-empty for valid records)
        title: Display title
        url: Absolute site URL (non-empty for valid records)
        description: Optional site description
        web_id: Optional web identifier
        site_collection_url: Optional URL of the owning site collection
    """

    id: SiteId
    url: str
    title: str = DEFAULT_SITE_TITLE
    description: Optional[str] = None
    web_id: Optional[WebId] = None
    site_collection_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON shape."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "webId": self.web_id,
            "siteCollectionUrl": self.site_collection_url,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteRecord":
        """Build a record from the camelCase JSON shape.

        No validation is applied; use ``is_valid_site`` on the result.
        """
        return cls(
            id=SiteId(data.get("id") or ""),
            title=data.get("title") or DEFAULT_SITE_TITLE,
            url=data.get("url") or "",
            description=data.get("description") or None,
            web_id=create_web_id(data.get("webId")),
            site_collection_url=data.get("siteCollectionUrl") or None,
        )


def is_valid_site(site: Any) -> bool:
    """Whether ``site`` is a ``SiteRecord`` with a non-empty id and url."""
    return (
        isinstance(site, SiteRecord)
        and _non_empty_str(site.id)
        and isinstance(site.title, str)
        and _non_empty_str(site.url)
    )


def is_valid_site_list(sites: Any) -> bool:
    """Whether ``sites`` is a list whose every element is a valid record."""
    return isinstance(sites, list) and all(is_valid_site(site) for site in sites)


def sort_sites_alphabetically(sites: Sequence[SiteRecord]) -> List[SiteRecord]:
    """Return a new list sorted by title, ignoring case."""
    return sorted(sites, key=lambda site: site.title.casefold())
