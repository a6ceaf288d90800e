"""License validation error classes.

These never escape ``LicenseValidator.get_license_status`` (it fails open);
they exist so the fetch path raises tagged errors that the fallback logic and
the logs can reason about.
"""

from __future__ import annotations

from typing import Any, Optional

from site_explorer.core.errors.base import CategorizedError, ErrorCategory, RemoteApiError


class LicenseApiError(RemoteApiError):
    """The licensing endpoint answered with an HTTP error status."""


class LicenseResponseError(CategorizedError):
    """The licensing endpoint answered 2xx with a body that failed validation.

    Attributes:
        payload: The raw decoded body, if any
    """

    category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        payload: Any = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.payload = payload
