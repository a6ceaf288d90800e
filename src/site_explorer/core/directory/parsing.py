"""Search API request construction and response parsing.

The search endpoint answers with
``PrimaryQueryResult.RelevantResults.Table.Rows[].Cells[] {Key, Value}``,
optionally wrapped in an OData ``{"d": ...}`` envelope. Rows go through a
three-stage pipeline: row validation, mapping to ``SiteRecord``, and final
record validation. Each stage logs its volume.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from site_explorer.core.directory.models import (
    DEFAULT_SITE_TITLE,
    SiteRecord,
    create_site_id,
    create_web_id,
)
from site_explorer.core.errors.directory import SiteValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

SEARCH_POSTQUERY_PATH = "/_api/search/postquery"
SITE_QUERY_TEXT = "contentclass:STS_Site"
SELECT_PROPERTIES = (
    "Title",
    "Path",
    "Description",
    "SiteId",
    "WebId",
    "SiteCollectionUrl",
)
DEFAULT_ROW_LIMIT = 500

SEARCH_HEADERS = {
    "Accept": "application/json;odata.metadata=none",
    "Content-Type": "application/json",
}


def build_search_request(row_limit: int = DEFAULT_ROW_LIMIT) -> Dict[str, Any]:
    """Body of the site search POST."""
    return {
        "request": {
            "Querytext": SITE_QUERY_TEXT,
            "SelectProperties": list(SELECT_PROPERTIES),
            "RowLimit": row_limit,
            "TrimDuplicates": False,
        }
    }


# ---------------------------------------------------------------------------
# Response structure
# ---------------------------------------------------------------------------


def unwrap_envelope(payload: Any) -> Any:
    """Strip an OData ``{"d": ...}`` envelope if present."""
    if isinstance(payload, dict) and payload.get("d"):
        return payload["d"]
    return payload


def extract_rows(payload: Any, search_url: Optional[str] = None) -> List[Any]:
    """Return the result rows of a decoded search response.

    Raises:
        SiteValidationError: If the payload lacks the
            ``PrimaryQueryResult.RelevantResults.Table.Rows`` list.
    """
    data = unwrap_envelope(payload)
    node: Any = data
    path = []
    for key in ("PrimaryQueryResult", "RelevantResults", "Table"):
        path.append(key)
        node = node.get(key) if isinstance(node, dict) else None
        if not isinstance(node, dict):
            break
    rows = node.get("Rows") if isinstance(node, dict) else None
    if not isinstance(rows, list):
        message = (
            "Invalid search API response structure. "
            "Expected PrimaryQueryResult.RelevantResults.Table.Rows"
        )
        logger.error("%s (got %s at %s)", message, type(data).__name__, ".".join(path))
        raise SiteValidationError(
            message,
            field="PrimaryQueryResult.RelevantResults.Table.Rows",
            value=data,
            api_endpoint=search_url,
            context="extract_rows",
        )
    return rows


# ---------------------------------------------------------------------------
# Row pipeline
# ---------------------------------------------------------------------------


def _cells(row: Any) -> List[Mapping[str, Any]]:
    if not isinstance(row, dict):
        return []
    cells = row.get("Cells")
    if not isinstance(cells, list):
        return []
    return [cell for cell in cells if isinstance(cell, dict)]


def _cell_value(cells: Sequence[Mapping[str, Any]], key: str) -> str:
    for cell in cells:
        if cell.get("Key") == key:
            value = cell.get("Value")
            return value if isinstance(value, str) else ""
    return ""


def is_valid_search_row(row: Any) -> bool:
    """Stage 1: the row has a non-empty string ``Path`` and a string ``Title``."""
    cells = _cells(row)
    if not cells:
        return False
    has_path = any(
        cell.get("Key") == "Path" and isinstance(cell.get("Value"), str) and cell["Value"]
        for cell in cells
    )
    has_title = any(
        cell.get("Key") == "Title" and isinstance(cell.get("Value"), str) for cell in cells
    )
    return has_path and has_title


def map_row_to_site(row: Any) -> SiteRecord:
    """Stage 2: map cells to a ``SiteRecord``.

    Identifiers are derived only from non-empty strings; an empty title falls
    back to ``DEFAULT_SITE_TITLE``.
    """
    cells = _cells(row)
    return SiteRecord(
        id=create_site_id(_cell_value(cells, "SiteId")),
        title=_cell_value(cells, "Title") or DEFAULT_SITE_TITLE,
        url=_cell_value(cells, "Path"),
        description=_cell_value(cells, "Description") or None,
        web_id=create_web_id(_cell_value(cells, "WebId")),
        site_collection_url=_cell_value(cells, "SiteCollectionUrl") or None,
    )


def process_search_rows(rows: Sequence[Any]) -> List[SiteRecord]:
    """Run the three-stage pipeline over raw search rows.

    Never raises for malformed rows; they are dropped and counted. If every
    row of a non-empty input is dropped, an error is logged (the response
    contract has probably drifted) and an empty list is returned.
    """
    raw_count = len(rows)

    valid_rows = [row for row in rows if is_valid_search_row(row)]
    logger.info("%d of %d search rows passed row validation", len(valid_rows), raw_count)

    mapped = [map_row_to_site(row) for row in valid_rows]
    logger.info("%d search rows mapped to site records", len(mapped))

    sites: List[SiteRecord] = []
    for site in mapped:
        if site.url and site.id:
            sites.append(site)
        else:
            logger.warning(
                "Site dropped at final validation (id=%s, url=%s, title=%s)",
                site.id or "missing",
                site.url or "missing",
                site.title or "missing",
            )
    logger.info("%d of %d mapped sites passed final validation", len(sites), len(mapped))

    if raw_count > 0 and not sites:
        logger.error(
            "All %d search rows were filtered out; the response shape may have changed",
            raw_count,
        )
    elif len(sites) < raw_count:
        logger.warning(
            "%d search rows filtered out (%d total, %d valid)",
            raw_count - len(sites),
            raw_count,
            len(sites),
        )
    return sites
