"""Error classification for cache-fallback and messaging decisions.

Maps any exception (or arbitrary value raised through an awaitable) onto one
of the four ``ErrorCategory`` members. Evidence is considered in order:

    1. An explicit ``category`` attribute holding a known category
    2. Transport failures (``httpx.TransportError``, builtin timeouts and
       connection errors) are NETWORK
    3. An HTTP status, from a ``status_code`` attribute or a 4xx/5xx token
       in the message
    4. Keywords in the message
    5. ``UNKNOWN``

The classifier is pure and total: it never raises, whatever it is given.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Optional

import httpx

from site_explorer.core.errors.base import ErrorCategory, category_for_status

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_STATUS_PATTERN = re.compile(r"\b([45]\d{2})\b")

_PERMISSION_KEYWORDS = (
    "permission",
    "unauthorized",
    "unauthorised",
    "forbidden",
    "access denied",
    "not authorized",
    "authentication",
)

_NETWORK_KEYWORDS = (
    "network",
    "fetch",
    "timeout",
    "timed out",
    "connection",
    "econnrefused",
    "econnreset",
    "enotfound",
    "dns",
    "unreachable",
)

_VALIDATION_KEYWORDS = (
    "parse",
    "invalid",
    "malformed",
    "schema",
    "validation",
    "unexpected structure",
)

# Transport-level failures: the request never produced an HTTP response
_TRANSPORT_ERRORS = (httpx.TransportError, TimeoutError, asyncio.TimeoutError, ConnectionError)

_KNOWN_CATEGORIES = {c.value: c for c in ErrorCategory}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def extract_error_message(error: Any) -> str:
    """Best-effort human-readable message for any raised value.

    Never raises. ``None`` and unprintable objects yield a placeholder.
    """
    if error is None:
        return "Unknown error"
    if isinstance(error, str):
        return error
    try:
        message = getattr(error, "message", None)
        if isinstance(message, str) and message:
            return message
        text = str(error)
    except Exception:
        return "Unknown error"
    if text:
        return text
    return type(error).__name__


def extract_status_code(message: Optional[str]) -> Optional[int]:
    """Extract the first 4xx/5xx status token from an error message.

    Args:
        message: Error text such as ``"Search failed: 503 Service Unavailable"``.

    Returns:
        The status code, or ``None`` if no 4xx/5xx token is present.
    """
    if not message:
        return None
    match = _STATUS_PATTERN.search(message)
    if match:
        return int(match.group(1))
    return None


def _explicit_category(error: Any) -> Optional[ErrorCategory]:
    try:
        raw = getattr(error, "category", None)
    except Exception:
        return None
    if isinstance(raw, ErrorCategory):
        return raw
    if isinstance(raw, str):
        return _KNOWN_CATEGORIES.get(raw.lower())
    return None


def _status_evidence(error: Any, message: str) -> Optional[ErrorCategory]:
    code: Any = None
    try:
        code = getattr(error, "status_code", None)
    except Exception:
        code = None
    if not isinstance(code, int) or isinstance(code, bool):
        code = extract_status_code(message)
    return category_for_status(code)


def _is_transport_error(error: Any) -> bool:
    return isinstance(error, _TRANSPORT_ERRORS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify_error(error: Any) -> ErrorCategory:
    """Classify a raised value into an ``ErrorCategory``.

    Args:
        error: Any exception or raised value, including ``None``.

    Returns:
        The category; ``ErrorCategory.UNKNOWN`` if nothing matches.
    """
    try:
        explicit = _explicit_category(error)
        if explicit is not None:
            return explicit

        # Transport errors are checked before the message: socket text such as
        # "('10.0.0.5', 443)" must not be read as an HTTP status
        if _is_transport_error(error):
            return ErrorCategory.NETWORK

        message = extract_error_message(error)

        by_status = _status_evidence(error, message)
        if by_status is not None:
            return by_status

        lowered = message.lower()
        if any(keyword in lowered for keyword in _PERMISSION_KEYWORDS):
            return ErrorCategory.PERMISSION
        if any(keyword in lowered for keyword in _NETWORK_KEYWORDS):
            return ErrorCategory.NETWORK
        if any(keyword in lowered for keyword in _VALIDATION_KEYWORDS):
            return ErrorCategory.VALIDATION
    except Exception as exc:  # pragma: no cover - classification must stay total
        logger.debug("Error classification failed: %s", exc)
    return ErrorCategory.UNKNOWN
