"""License validation for the current tenant."""

from site_explorer.core.license.models import (
    LicenseFeature,
    LicenseReason,
    LicenseStatus,
    LicenseValidationResponse,
    license_error_message,
)
from site_explorer.core.license.tenant import extract_tenant_id
from site_explorer.core.license.validator import LicenseSettings, LicenseValidator

__all__ = [
    "LicenseFeature",
    "LicenseReason",
    "LicenseSettings",
    "LicenseStatus",
    "LicenseValidationResponse",
    "LicenseValidator",
    "extract_tenant_id",
    "license_error_message",
]
