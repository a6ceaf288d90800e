"""Base error types and the category taxonomy.

Every error raised by this package carries an explicit ``category`` assigned at
the point of creation. Inference from messages (see
``site_explorer.core.classifier``) is only a fallback for foreign exceptions
such as transport errors raised by httpx.

Usage:
    from site_explorer.core.errors.base import CategorizedError, ErrorCategory

    raise CategorizedError("Bad payload", category=ErrorCategory.VALIDATION)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Classification of failures for cache-fallback and messaging decisions."""

    NETWORK = "network"
    PERMISSION = "permission"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


def category_for_status(status_code: Optional[int]) -> Optional[ErrorCategory]:
    """Map an HTTP status code onto an error category.

    401/403 are permission failures; 408, 504 and every 5xx are transient
    network failures; any other 4xx is a validation failure (the request or
    the contract is wrong). Codes outside 4xx/5xx yield ``None``.
    """
    if status_code is None:
        return None
    if status_code in (401, 403):
        return ErrorCategory.PERMISSION
    if status_code in (408, 504) or 500 <= status_code <= 599:
        return ErrorCategory.NETWORK
    if 400 <= status_code <= 499:
        return ErrorCategory.VALIDATION
    return None


class CategorizedError(Exception):
    """Base exception for all site-explorer errors.

    Attributes:
        message: Human-readable error description
        category: Explicit failure category (class default unless overridden)
        original_error: The underlying exception if available
        context: Where or why the error occurred, for logs
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        category: Optional[ErrorCategory] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        self.original_error = original_error
        self.context = context

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging or CLI JSON output."""
        out: Dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            out["context"] = self.context
        if self.original_error is not None:
            out["cause"] = str(self.original_error)
        return out


class RemoteApiError(CategorizedError):
    """A remote endpoint answered with an HTTP error status.

    The category is derived from ``status_code`` unless given explicitly.

    Attributes:
        status_code: HTTP status returned by the endpoint
        api_endpoint: URL that was called
    """

    category = ErrorCategory.NETWORK

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        api_endpoint: Optional[str] = None,
        category: Optional[ErrorCategory] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=category or category_for_status(status_code),
            original_error=original_error,
            context=context,
        )
        self.status_code = status_code
        self.api_endpoint = api_endpoint

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        if self.status_code is not None:
            out["status_code"] = self.status_code
        if self.api_endpoint:
            out["api_endpoint"] = self.api_endpoint
        return out


def error_to_dict(exc: BaseException) -> Dict[str, Any]:
    """Convert any exception to a serializable dict.

    Categorized errors use their own ``to_dict``; foreign exceptions are
    classified on the fly.
    """
    if isinstance(exc, CategorizedError):
        return exc.to_dict()

    from site_explorer.core.classifier import classify_error, extract_error_message

    return {
        "error": type(exc).__name__,
        "message": extract_error_message(exc),
        "category": classify_error(exc).value,
    }
