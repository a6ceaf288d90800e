"""License data models.

``LicenseValidationResponse`` parses the licensing API body (and the copy
persisted in the cache). ``LicenseStatus`` is the caller-facing value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class LicenseReason(str, Enum):
    """Why the licensing API reported a license as invalid."""

    TENANT_NOT_REGISTERED = "tenant_not_registered"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    SUBSCRIPTION_CANCELED = "subscription_canceled"
    SUBSCRIPTION_INACTIVE = "subscription_inactive"
    MISSING_TENANT_ID = "missing_tenant_id"
    INVALID_TENANT_ID = "invalid_tenant_id"
    MISSING_PRODUCT_ID = "missing_product_id"
    INVALID_PRODUCT_ID = "invalid_product_id"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVER_ERROR = "server_error"


class LicenseFeature(str, Enum):
    """Feature flags a license tier can grant."""

    BASIC_NAVIGATION = "basic_navigation"
    FAVORITES = "favorites"
    SEARCH = "search"
    PRIORITY_SUPPORT = "priority_support"
    CUSTOM_BRANDING = "custom_branding"


_REASON_MESSAGES: Dict[LicenseReason, str] = {
    LicenseReason.TENANT_NOT_REGISTERED: (
        "This tenant is not registered. Please purchase a license to continue."
    ),
    LicenseReason.SUBSCRIPTION_EXPIRED: "Your subscription has expired. Please renew it.",
    LicenseReason.SUBSCRIPTION_CANCELED: (
        "Your subscription has been canceled. Please resubscribe."
    ),
    LicenseReason.SUBSCRIPTION_INACTIVE: (
        "Your subscription is not active. Please contact support."
    ),
    LicenseReason.MISSING_PRODUCT_ID: (
        "Invalid license configuration. Please update the extension."
    ),
    LicenseReason.INVALID_PRODUCT_ID: (
        "Invalid license configuration. Please update the extension."
    ),
    LicenseReason.RATE_LIMIT_EXCEEDED: "Too many license checks. Please try again later.",
    LicenseReason.SERVER_ERROR: "Unable to verify license. Please try again later.",
}

DEFAULT_LICENSE_ERROR = "License validation failed. Please contact support."


def license_error_message(reason: Optional[LicenseReason]) -> str:
    """User-facing message for an invalid-license ``reason``."""
    if reason is None:
        return DEFAULT_LICENSE_ERROR
    return _REASON_MESSAGES.get(reason, DEFAULT_LICENSE_ERROR)


class LicenseValidationResponse(BaseModel):
    """Body of ``GET /license/validate``.

    Unknown ``reason`` values are dropped rather than rejected so a newer
    server cannot turn a usable answer into a parse failure.
    """

    valid: bool = Field(..., description="Whether the tenant holds a usable license")
    tier: Optional[str] = Field(default=None, description="License tier name")
    features: List[str] = Field(default_factory=list, description="Granted feature flags")
    expires_at: Optional[datetime] = Field(
        default=None, alias="expiresAt", description="Subscription expiry (ISO-8601)"
    )
    grace_period_days: Optional[int] = Field(
        default=None, alias="gracePeriodDays", ge=0, description="Server-side grace period"
    )
    reason: Optional[LicenseReason] = Field(default=None, description="Why the license is invalid")

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("features", mode="before")
    @classmethod
    def validate_features(cls, v: Any) -> Any:
        if v is None:
            return []
        return v

    @field_validator("reason", mode="before")
    @classmethod
    def validate_reason(cls, v: Any) -> Any:
        if v is None or isinstance(v, LicenseReason):
            return v
        if isinstance(v, str) and v in LicenseReason._value2member_map_:
            return v
        logger.warning("Ignoring unknown license reason: %r", v)
        return None

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire shape used for persistence."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass
class LicenseStatus:
    """License state presented to callers.

    Attributes:
        is_valid: Whether licensed features may be used
        tier: License tier, if known
        features: Granted feature flags
        expires_at: Subscription expiry, if known
        error: User-facing message when invalid
        reason: Machine-readable reason when invalid
        is_cached: Whether the value came from the persisted cache
        is_checked: Whether a check (cache or remote) has completed
    """

    is_valid: bool
    tier: Optional[str] = None
    features: List[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    error: Optional[str] = None
    reason: Optional[LicenseReason] = None
    is_cached: bool = False
    is_checked: bool = True

    @classmethod
    def from_response(
        cls,
        response: LicenseValidationResponse,
        *,
        is_cached: bool,
        surface_error: bool = True,
    ) -> "LicenseStatus":
        """Build a status from an API response.

        ``surface_error=False`` suppresses the user-facing error text (used
        when a stale response is served after a failed refresh).
        """
        error = None
        if surface_error and not response.valid:
            error = license_error_message(response.reason)
        return cls(
            is_valid=response.valid,
            tier=response.tier,
            features=list(response.features),
            expires_at=response.expires_at,
            error=error,
            reason=response.reason,
            is_cached=is_cached,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "tier": self.tier,
            "features": list(self.features),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "error": self.error,
            "reason": self.reason.value if self.reason else None,
            "is_cached": self.is_cached,
            "is_checked": self.is_checked,
        }
