"""License validator.

Re-validates the tenant's subscription against the licensing API and keeps
the answer in a persisted, tenant-scoped cache.

Freshness is category-dependent: a ``valid`` answer is trusted for 24 hours,
an ``invalid`` one for 1 hour, and a ``valid`` answer stays usable for quick
reads through a 7-day grace window. Every failure fails open except an
underivable tenant, which is a configuration error and fails closed.

Persisted entry (JSON):
    {"response": {...}, "cachedAt": <epoch ms>, "tenantId": "<tenant>"}
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import httpx
from pydantic import ValidationError

from site_explorer.core.cache import CacheEntry, FreshnessPolicy
from site_explorer.core.classifier import classify_error, extract_error_message
from site_explorer.core.deadline import DEFAULT_TIMEOUT_SECONDS, with_timeout
from site_explorer.core.errors.license import LicenseApiError, LicenseResponseError
from site_explorer.core.license.models import (
    LicenseFeature,
    LicenseReason,
    LicenseStatus,
    LicenseValidationResponse,
    license_error_message,
)
from site_explorer.core.license.tenant import DEFAULT_PLATFORM_DOMAIN, extract_tenant_id
from site_explorer.core.redaction import redact_secrets
from site_explorer.core.session import SessionContext
from site_explorer.core.storage import KeyValueStore

logger = logging.getLogger(__name__)

VALIDATE_ENDPOINT = "/license/validate"

_HOUR = 60 * 60
_DAY = 24 * _HOUR


@dataclass
class LicenseSettings:
    """Licensing endpoint and cache policy.

    Attributes:
        api_base_url: Licensing API root (``/license/validate`` is appended)
        product_id: Product identifier sent with every check
        platform_domain: Host suffix the tenant is derived from
        cache_key_prefix: Storage key prefix; the tenant is appended
        valid_ttl_hours: Freshness of a ``valid`` answer
        invalid_ttl_hours: Freshness of an ``invalid`` answer
        grace_days: How long a ``valid`` answer remains usable offline
        request_timeout: Deadline for the licensing call (seconds)
    """

    api_base_url: str = "https://licensing.example.com/api"
    product_id: str = "site-explorer"
    platform_domain: str = DEFAULT_PLATFORM_DOMAIN
    cache_key_prefix: str = "site-explorer-license"
    valid_ttl_hours: float = 24.0
    invalid_ttl_hours: float = 1.0
    grace_days: float = 7.0
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS

    def freshness_policy(self) -> FreshnessPolicy:
        return FreshnessPolicy(
            ttl_seconds=self.invalid_ttl_hours * _HOUR,
            category_ttls={
                "valid": self.valid_ttl_hours * _HOUR,
                "invalid": self.invalid_ttl_hours * _HOUR,
            },
            grace_seconds=self.grace_days * _DAY,
        )


class LicenseValidator:
    """Tenant license checks with a persisted cache and fail-open fallback.

    The tenant is derived once, at construction, from the session's site URL.

    Example:
        validator = LicenseValidator(session, FileKeyValueStore())
        status = await validator.get_license_status()
        if LicenseValidator.has_feature(LicenseFeature.FAVORITES, status):
            ...
    """

    def __init__(
        self,
        session: SessionContext,
        store: KeyValueStore,
        *,
        settings: Optional[LicenseSettings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._session = session
        self._store = store
        self._settings = settings or LicenseSettings()
        self._clock = clock
        self._policy = self._settings.freshness_policy()
        self._tenant_id = extract_tenant_id(session.site_url, self._settings.platform_domain)
        self._in_flight: Optional["asyncio.Future[LicenseValidationResponse]"] = None
        # Bumped by clear_cache; a check started under an older generation
        # must not persist its answer
        self._generation = 0

    @property
    def tenant_id(self) -> Optional[str]:
        return self._tenant_id

    @property
    def cache_key(self) -> str:
        return f"{self._settings.cache_key_prefix}-{self._tenant_id or 'unknown'}"

    @property
    def validate_url(self) -> str:
        return f"{self._settings.api_base_url.rstrip('/')}{VALIDATE_ENDPOINT}"

    # =========================================================================
    # Public API
    # =========================================================================

    def get_quick_cache_status(self) -> Optional[LicenseStatus]:
        """Synchronous cache-only read; never touches the network.

        A cached ``valid`` answer is usable through the grace window, an
        ``invalid`` one only while fresh.
        """
        if self._tenant_id is None:
            return None
        entry = self._read_cache()
        if entry is None:
            return None
        now = self._clock()
        if entry.value.valid:
            usable = self._policy.is_within_grace(entry, now)
        else:
            usable = self._policy.is_fresh(entry, now)
        if not usable:
            return None
        return LicenseStatus.from_response(entry.value, is_cached=True)

    async def get_license_status(self, force_refresh: bool = False) -> LicenseStatus:
        """Authoritative license state. Never raises.

        Args:
            force_refresh: Skip the fresh-cache shortcut and ask the API.
                The existing entry is kept as the fail-open fallback.
        """
        if self._tenant_id is None:
            logger.warning("No tenant ID available; license check failed closed")
            return self._unknown_tenant_status()

        entry = self._read_cache()
        if not force_refresh and self._policy.is_fresh(entry, self._clock()):
            logger.info(
                "Returning cached license status (valid=%s, age=%.0fs)",
                entry.value.valid,
                entry.age(self._clock()),
            )
            return LicenseStatus.from_response(entry.value, is_cached=True)

        try:
            response = await self._refresh()
        except Exception as exc:
            return self._fail_open(entry, exc)
        return LicenseStatus.from_response(response, is_cached=False)

    async def validate_license(self) -> LicenseValidationResponse:
        """Lower-level check returning the raw API answer. Never raises.

        On failure a cached answer inside the grace window is returned;
        otherwise ``valid=False, reason=server_error``.
        """
        if self._tenant_id is None:
            logger.warning("No tenant ID available; license check failed closed")
            return LicenseValidationResponse(valid=False, reason=LicenseReason.INVALID_TENANT_ID)

        entry = self._read_cache()
        now = self._clock()
        if self._policy.is_fresh(entry, now):
            return entry.value

        try:
            return await self._refresh()
        except Exception as exc:
            detail = redact_secrets(extract_error_message(exc))
            if self._policy.is_within_grace(entry, now):
                logger.warning(
                    "License check failed, using stale cache (age %.0fs): %s",
                    entry.age(now),
                    detail,
                )
                return entry.value
            logger.error("License check failed: %s", detail)
            return LicenseValidationResponse(valid=False, reason=LicenseReason.SERVER_ERROR)

    def clear_cache(self) -> None:
        """Remove the persisted entry. Storage failures are logged only.

        A check already in flight is detached and will not persist its answer.
        """
        self._in_flight = None
        self._generation += 1
        try:
            self._store.remove_item(self.cache_key)
            logger.info("License cache cleared")
        except Exception as exc:
            logger.warning("Failed to clear license cache: %s", exc)

    @staticmethod
    def has_feature(feature: Union[LicenseFeature, str], status: LicenseStatus) -> bool:
        """Whether a valid ``status`` grants ``feature``."""
        if not status.is_valid:
            return False
        name = feature.value if isinstance(feature, LicenseFeature) else feature
        return name in status.features

    # =========================================================================
    # Fallbacks
    # =========================================================================

    def _unknown_tenant_status(self) -> LicenseStatus:
        reason = LicenseReason.INVALID_TENANT_ID
        return LicenseStatus(
            is_valid=False,
            error=license_error_message(reason),
            reason=reason,
            is_cached=False,
        )

    def _fail_open(
        self,
        entry: Optional[CacheEntry[LicenseValidationResponse]],
        exc: Exception,
    ) -> LicenseStatus:
        detail = redact_secrets(extract_error_message(exc))
        category = classify_error(exc)
        if entry is not None:
            logger.warning(
                "License API error (%s), falling back to cached license: %s",
                category.value,
                detail,
            )
            return LicenseStatus.from_response(entry.value, is_cached=True, surface_error=False)

        logger.warning(
            "License API error (%s) and no cache, assuming valid: %s",
            category.value,
            detail,
        )
        return LicenseStatus(is_valid=True, is_cached=False)

    # =========================================================================
    # Cache
    # =========================================================================

    def _discard_cache(self, reason: str) -> None:
        logger.warning("Discarding license cache entry: %s", reason)
        try:
            self._store.remove_item(self.cache_key)
        except Exception as exc:
            logger.warning("Failed to remove license cache entry: %s", exc)

    def _read_cache(self) -> Optional[CacheEntry[LicenseValidationResponse]]:
        try:
            raw: Any = self._store.get_item(self.cache_key)
        except Exception as exc:
            logger.warning("Failed to read license cache: %s", exc)
            return None
        if raw is None:
            return None

        if (
            not isinstance(raw, dict)
            or not raw.get("response")
            or not raw.get("cachedAt")
            or not raw.get("tenantId")
        ):
            self._discard_cache("invalid structure")
            return None

        if raw["tenantId"] != self._tenant_id:
            self._discard_cache(f"tenant mismatch ({raw['tenantId']} != {self._tenant_id})")
            return None

        cached_at = raw["cachedAt"]
        if isinstance(cached_at, bool) or not isinstance(cached_at, (int, float)):
            self._discard_cache("cachedAt is not a timestamp")
            return None

        try:
            response = LicenseValidationResponse.model_validate(raw["response"])
        except ValidationError as exc:
            self._discard_cache(f"unreadable response ({exc.error_count()} errors)")
            return None

        return CacheEntry(
            value=response,
            cached_at=cached_at / 1000.0,
            category="valid" if response.valid else "invalid",
        )

    def _write_cache(self, response: LicenseValidationResponse) -> None:
        payload = {
            "response": response.to_json_dict(),
            "cachedAt": int(self._clock() * 1000),
            "tenantId": self._tenant_id,
        }
        if self._store.set_item(self.cache_key, payload):
            logger.info("License cached (valid=%s)", response.valid)
        else:
            logger.warning("Failed to cache license response")

    # =========================================================================
    # Remote
    # =========================================================================

    async def _refresh(self) -> LicenseValidationResponse:
        """Fetch and persist; concurrent callers share one request."""
        if self._in_flight is None:
            task = asyncio.ensure_future(self._fetch_and_cache(self._generation))
            self._in_flight = task
            task.add_done_callback(self._release_in_flight)
        else:
            logger.debug("Joining in-flight license check")
        return await asyncio.shield(self._in_flight)

    def _release_in_flight(self, task: "asyncio.Future[LicenseValidationResponse]") -> None:
        if self._in_flight is task:
            self._in_flight = None
        if not task.cancelled():
            task.exception()

    async def _fetch_and_cache(self, generation: int) -> LicenseValidationResponse:
        response = await with_timeout(
            self._fetch_license_status(),
            timeout=self._settings.request_timeout,
            message="License API request timed out",
        )
        if generation == self._generation:
            self._write_cache(response)
        else:
            logger.debug("License cache cleared during check; not persisting the answer")
        return response

    async def _fetch_license_status(self) -> LicenseValidationResponse:
        url = self.validate_url
        params = {"tenant": self._tenant_id, "product": self._settings.product_id}
        logger.info(
            "Fetching license status for tenant %s, product %s",
            self._tenant_id,
            self._settings.product_id,
        )

        async with httpx.AsyncClient(timeout=self._settings.request_timeout) as client:
            response = await client.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
            )

        if response.status_code >= 400:
            body = redact_secrets(response.text[:200]) if response.text else ""
            raise LicenseApiError(
                f"License API request failed ({response.status_code}): {body}",
                status_code=response.status_code,
                api_endpoint=url,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LicenseResponseError(
                "License API returned a response that is not valid JSON",
                original_error=exc,
            ) from exc

        try:
            parsed = LicenseValidationResponse.model_validate(data)
        except ValidationError as exc:
            raise LicenseResponseError(
                f"License API returned an invalid response: {exc.error_count()} errors",
                payload=data,
                original_error=exc,
            ) from exc

        logger.info(
            "License validation result: %s (%s)",
            "VALID" if parsed.valid else "INVALID",
            parsed.reason.value if parsed.reason else parsed.tier or "",
        )
        return parsed
