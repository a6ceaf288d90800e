"""Unified error hierarchy for site-explorer.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from site_explorer.core.errors import SitePermissionError, ErrorCategory
"""

# --- Base ---
from site_explorer.core.errors.base import (
    CategorizedError,
    ErrorCategory,
    RemoteApiError,
    category_for_status,
    error_to_dict,
)

# --- Site directory errors ---
from site_explorer.core.errors.directory import (
    SiteDirectoryError,
    SiteNetworkError,
    SitePermissionError,
    SiteValidationError,
)

# --- License errors ---
from site_explorer.core.errors.license import (
    LicenseApiError,
    LicenseResponseError,
)

# --- Resilience errors ---
from site_explorer.core.errors.resilience import DeadlineExceededError

__all__ = [
    # Base
    "CategorizedError",
    "ErrorCategory",
    "RemoteApiError",
    "category_for_status",
    "error_to_dict",
    # Site directory
    "SiteDirectoryError",
    "SiteNetworkError",
    "SitePermissionError",
    "SiteValidationError",
    # License
    "LicenseApiError",
    "LicenseResponseError",
    # Resilience
    "DeadlineExceededError",
]
