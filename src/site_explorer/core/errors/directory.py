"""Site directory error classes.

Raised by ``SiteDirectoryFetcher.get_sites`` once the stale-cache fallback has
been ruled out. Callers can branch on the class or on ``category``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from site_explorer.core.errors.base import CategorizedError, ErrorCategory


class SiteDirectoryError(CategorizedError):
    """Base exception for site directory failures.

    Attributes:
        api_endpoint: Search URL that was called, if known
    """

    def __init__(
        self,
        message: str,
        *,
        api_endpoint: Optional[str] = None,
        category: Optional[ErrorCategory] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=category,
            original_error=original_error,
            context=context,
        )
        self.api_endpoint = api_endpoint


class SiteNetworkError(SiteDirectoryError):
    """The search endpoint was unreachable, timed out, or failed server-side."""

    category = ErrorCategory.NETWORK

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        api_endpoint: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[str] = None,
    ):
        super().__init__(
            message,
            api_endpoint=api_endpoint,
            original_error=original_error,
            context=context,
        )
        self.status_code = status_code


class SitePermissionError(SiteDirectoryError):
    """The user is not authenticated or not allowed to query sites."""

    category = ErrorCategory.PERMISSION


class SiteValidationError(SiteDirectoryError):
    """The search response or a cached value did not have the expected shape.

    Attributes:
        field: Name of the offending field or path
        value: Offending value (truncated in ``to_dict``)
    """

    category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        api_endpoint: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[str] = None,
    ):
        super().__init__(
            message,
            api_endpoint=api_endpoint,
            original_error=original_error,
            context=context,
        )
        self.field = field
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        if self.field:
            out["field"] = self.field
        if self.value is not None:
            out["value"] = repr(self.value)[:200]
        return out
