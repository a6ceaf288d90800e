"""Test helpers: mock response builders, search payloads, a fake clock."""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

WEB_URL = "https://contoso.sharepoint.com/sites/intranet"


# ---------------------------------------------------------------------------
# Mock response builder
# ---------------------------------------------------------------------------


def make_mock_response(
    *,
    status_code: int = 200,
    json_data: Any = None,
    text: str = "",
    raise_json: bool = False,
) -> MagicMock:
    """Build a mock httpx.Response.

    Args:
        status_code: HTTP status code.
        json_data: JSON body (returned by response.json()).
        text: Plain text body.
        raise_json: If True, response.json() raises ValueError.
    """
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.headers = {}
    response.text = text

    if raise_json:
        response.json.side_effect = ValueError("No JSON")
    elif json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.return_value = {}

    return response


@contextmanager
def patched_http(method: str, *, response: Any = None, side_effect: Any = None):
    """Patch ``httpx.AsyncClient`` so ``method`` returns ``response``.

    Yields the mock client; ``mock_client.client_class`` is the patched class.
    """
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        setattr(
            mock_client,
            method,
            AsyncMock(return_value=response, side_effect=side_effect),
        )
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)
        mock_client_class.return_value = mock_client
        mock_client.client_class = mock_client_class
        yield mock_client


# ---------------------------------------------------------------------------
# Search payload builders
# ---------------------------------------------------------------------------


def search_row(
    *,
    title: Optional[str] = "Human Resources",
    path: Optional[str] = "https://contoso.sharepoint.com/sites/hr",
    site_id: Optional[str] = "site-hr",
    web_id: Optional[str] = "web-hr",
    description: Optional[str] = None,
    site_collection_url: Optional[str] = None,
) -> Dict[str, Any]:
    """One search result row; ``None`` omits the cell."""
    values = {
        "Title": title,
        "Path": path,
        "SiteId": site_id,
        "WebId": web_id,
        "Description": description,
        "SiteCollectionUrl": site_collection_url,
    }
    cells = [
        {"Key": key, "Value": value, "ValueType": "Edm.String"}
        for key, value in values.items()
        if value is not None
    ]
    return {"Cells": cells}


def search_payload(rows: List[Dict[str, Any]], *, envelope: bool = False) -> Dict[str, Any]:
    """A search response body holding ``rows``."""
    body = {
        "PrimaryQueryResult": {
            "RelevantResults": {
                "RowCount": len(rows),
                "Table": {"Rows": rows},
            }
        }
    }
    if envelope:
        return {"d": body}
    return body


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
