"""Tests for LicenseValidator caching, fail-open behavior and persistence."""

import asyncio

import httpx
import pytest

from site_explorer.core.license.models import (
    LicenseFeature,
    LicenseReason,
    LicenseStatus,
    LicenseValidationResponse,
)
from site_explorer.core.license.validator import LicenseSettings, LicenseValidator
from site_explorer.core.session import SessionContext
from tests.helpers import make_mock_response, patched_http

HOUR = 60 * 60
DAY = 24 * HOUR

CACHE_KEY = "site-explorer-license-contoso"
VALIDATE_URL = "https://licensing.example.com/api/license/validate"

VALID_BODY = {"valid": True, "tier": "pro", "features": ["basic_navigation", "favorites"]}
INVALID_BODY = {"valid": False, "reason": "subscription_expired"}


def _seed(store, clock, body, *, age, tenant="contoso"):
    store.set_item(
        CACHE_KEY,
        {
            "response": body,
            "cachedAt": int((clock() - age) * 1000),
            "tenantId": tenant,
        },
    )


def _connect_error():
    return httpx.ConnectError("connection refused", request=httpx.Request("GET", VALIDATE_URL))


@pytest.fixture
def validator(session, store, clock):
    return LicenseValidator(session, store, clock=clock)


class TestConstruction:
    def test_tenant_and_cache_key(self, validator):
        assert validator.tenant_id == "contoso"
        assert validator.cache_key == CACHE_KEY
        assert validator.validate_url == VALIDATE_URL

    def test_unknown_tenant_cache_key(self, store, clock):
        session = SessionContext(web_url="https://intranet.example.com")
        validator = LicenseValidator(session, store, clock=clock)
        assert validator.tenant_id is None
        assert validator.cache_key == "site-explorer-license-unknown"

    def test_tenant_comes_from_site_url(self, store, clock):
        session = SessionContext(
            web_url="https://intranet.example.com/sub",
            site_url="https://fabrikam.sharepoint.com/sites/root",
        )
        assert LicenseValidator(session, store, clock=clock).tenant_id == "fabrikam"


class TestGetLicenseStatus:
    @pytest.mark.asyncio
    async def test_remote_check_on_empty_cache(self, validator):
        with patched_http("get", response=make_mock_response(json_data=VALID_BODY)) as client:
            status = await validator.get_license_status()

        assert status.is_valid is True
        assert status.tier == "pro"
        assert status.is_cached is False
        assert status.is_checked is True

        call = client.get.call_args
        assert call.args[0] == VALIDATE_URL
        assert call.kwargs["params"] == {"tenant": "contoso", "product": "site-explorer"}

    @pytest.mark.asyncio
    async def test_persisted_entry_shape(self, validator, store, clock):
        with patched_http("get", response=make_mock_response(json_data=VALID_BODY)):
            await validator.get_license_status()

        entry = store.get_item(CACHE_KEY)
        assert entry["tenantId"] == "contoso"
        assert entry["cachedAt"] == int(clock() * 1000)
        assert entry["response"]["valid"] is True
        assert entry["response"]["features"] == ["basic_navigation", "favorites"]

    @pytest.mark.asyncio
    async def test_valid_entry_trusted_for_a_day(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=23 * HOUR)
        with patched_http("get", response=make_mock_response(json_data=INVALID_BODY)) as client:
            status = await validator.get_license_status()
        client.get.assert_not_called()
        assert status.is_valid is True
        assert status.is_cached is True

    @pytest.mark.asyncio
    async def test_invalid_entry_expires_after_an_hour(self, validator, store, clock):
        _seed(store, clock, INVALID_BODY, age=90 * 60)
        with patched_http("get", response=make_mock_response(json_data=VALID_BODY)) as client:
            status = await validator.get_license_status()
        assert client.get.await_count == 1
        assert status.is_valid is True
        assert status.is_cached is False

    @pytest.mark.asyncio
    async def test_fresh_invalid_entry_surfaces_error(self, validator, store, clock):
        _seed(store, clock, INVALID_BODY, age=10 * 60)
        with patched_http("get", response=make_mock_response(json_data=VALID_BODY)) as client:
            status = await validator.get_license_status()
        client.get.assert_not_called()
        assert status.is_valid is False
        assert status.reason is LicenseReason.SUBSCRIPTION_EXPIRED
        assert status.error == "Your subscription has expired. Please renew it."

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_fresh_cache(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=HOUR)
        with patched_http("get", response=make_mock_response(json_data=INVALID_BODY)) as client:
            status = await validator.get_license_status(force_refresh=True)
        assert client.get.await_count == 1
        assert status.is_valid is False
        assert status.is_cached is False

    @pytest.mark.asyncio
    async def test_force_refresh_failure_keeps_fallback(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=HOUR)
        with patched_http("get", side_effect=_connect_error()):
            status = await validator.get_license_status(force_refresh=True)
        assert status.is_valid is True
        assert status.is_cached is True
        assert store.get_item(CACHE_KEY) is not None

    @pytest.mark.asyncio
    async def test_fails_open_without_cache(self, validator):
        with patched_http("get", side_effect=_connect_error()):
            status = await validator.get_license_status()
        assert status.is_valid is True
        assert status.is_cached is False
        assert status.error is None

    @pytest.mark.parametrize("status_code", [401, 404, 429, 500, 503])
    @pytest.mark.asyncio
    async def test_http_errors_fail_open(self, validator, status_code):
        response = make_mock_response(status_code=status_code, text="nope")
        with patched_http("get", response=response):
            status = await validator.get_license_status()
        assert status.is_valid is True

    @pytest.mark.asyncio
    async def test_malformed_body_fails_open(self, validator, store):
        with patched_http("get", response=make_mock_response(json_data={"tier": "pro"})):
            status = await validator.get_license_status()
        assert status.is_valid is True
        assert store.get_item(CACHE_KEY) is None

    @pytest.mark.asyncio
    async def test_non_json_body_fails_open(self, validator):
        with patched_http("get", response=make_mock_response(raise_json=True)):
            assert (await validator.get_license_status()).is_valid is True

    @pytest.mark.asyncio
    async def test_expired_cache_served_on_failure(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=30 * DAY)
        with patched_http("get", side_effect=_connect_error()):
            status = await validator.get_license_status()
        assert status.is_valid is True
        assert status.tier == "pro"
        assert status.is_cached is True

    @pytest.mark.asyncio
    async def test_stale_invalid_entry_served_without_error_text(self, validator, store, clock):
        _seed(store, clock, INVALID_BODY, age=2 * HOUR)
        with patched_http("get", side_effect=_connect_error()):
            status = await validator.get_license_status()
        assert status.is_valid is False
        assert status.error is None
        assert status.is_cached is True

    @pytest.mark.asyncio
    async def test_timeout_fails_open(self, session, store, clock):
        validator = LicenseValidator(
            session, store, settings=LicenseSettings(request_timeout=0.01), clock=clock
        )

        async def hang(*args, **kwargs):
            await asyncio.sleep(0.05)
            return make_mock_response(json_data=INVALID_BODY)

        with patched_http("get", side_effect=hang):
            status = await validator.get_license_status()
        assert status.is_valid is True
        assert status.is_cached is False

    @pytest.mark.asyncio
    async def test_late_answer_after_timeout_is_not_persisted(self, session, store, clock):
        validator = LicenseValidator(
            session, store, settings=LicenseSettings(request_timeout=0.01), clock=clock
        )
        _seed(store, clock, INVALID_BODY, age=2 * HOUR)
        before = store.get_item(CACHE_KEY)
        late_done = asyncio.Event()

        async def late_get(*args, **kwargs):
            await asyncio.sleep(0.05)
            late_done.set()
            return make_mock_response(json_data=VALID_BODY)

        with patched_http("get", side_effect=late_get):
            status = await validator.get_license_status()
            await asyncio.wait_for(late_done.wait(), timeout=1.0)
            await asyncio.sleep(0)

        assert status.is_valid is False
        assert status.is_cached is True
        assert store.get_item(CACHE_KEY) == before

    @pytest.mark.asyncio
    async def test_late_answer_without_cache_is_not_persisted(self, session, store, clock):
        validator = LicenseValidator(
            session, store, settings=LicenseSettings(request_timeout=0.01), clock=clock
        )
        late_done = asyncio.Event()

        async def late_get(*args, **kwargs):
            await asyncio.sleep(0.05)
            late_done.set()
            return make_mock_response(json_data=INVALID_BODY)

        with patched_http("get", side_effect=late_get):
            status = await validator.get_license_status()
            await asyncio.wait_for(late_done.wait(), timeout=1.0)
            await asyncio.sleep(0)

        assert status.is_valid is True
        assert store.get_item(CACHE_KEY) is None

    @pytest.mark.asyncio
    async def test_clear_cache_during_check_is_not_undone(self, validator, store):
        release = asyncio.Event()

        async def gated_get(*args, **kwargs):
            await release.wait()
            return make_mock_response(json_data=VALID_BODY)

        with patched_http("get", side_effect=gated_get) as client:
            pending = asyncio.ensure_future(validator.get_license_status())
            await asyncio.sleep(0)
            validator.clear_cache()
            release.set()
            status = await pending
            assert store.get_item(CACHE_KEY) is None
            await validator.get_license_status()

        assert status.is_valid is True
        assert client.get.await_count == 2
        assert store.get_item(CACHE_KEY) is not None

    @pytest.mark.asyncio
    async def test_unknown_tenant_fails_closed_without_io(self, store, clock):
        session = SessionContext(web_url="https://intranet.example.com")
        validator = LicenseValidator(session, store, clock=clock)
        with patched_http("get", response=make_mock_response(json_data=VALID_BODY)) as client:
            status = await validator.get_license_status()
        client.get.assert_not_called()
        assert status.is_valid is False
        assert status.reason is LicenseReason.INVALID_TENANT_ID
        assert status.error

    @pytest.mark.asyncio
    async def test_concurrent_checks_share_one_request(self, validator):
        async def slow_get(*args, **kwargs):
            await asyncio.sleep(0.01)
            return make_mock_response(json_data=VALID_BODY)

        with patched_http("get", side_effect=slow_get) as client:
            first, second = await asyncio.gather(
                validator.get_license_status(), validator.get_license_status()
            )
        assert client.get.await_count == 1
        assert first.is_valid and second.is_valid


class TestCacheIntegrity:
    @pytest.mark.asyncio
    async def test_tenant_mismatch_is_discarded(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=60, tenant="fabrikam")
        with patched_http("get", side_effect=_connect_error()):
            status = await validator.get_license_status()
        assert status.is_cached is False
        assert store.get_item(CACHE_KEY) is None

    def test_tenant_mismatch_not_used_for_quick_status(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=60, tenant="fabrikam")
        assert validator.get_quick_cache_status() is None
        assert store.get_item(CACHE_KEY) is None

    @pytest.mark.parametrize(
        "raw",
        [
            "not-a-dict",
            {"response": VALID_BODY, "tenantId": "contoso"},
            {"response": VALID_BODY, "cachedAt": "yesterday", "tenantId": "contoso"},
            {"response": VALID_BODY, "cachedAt": True, "tenantId": "contoso"},
            {"response": {"tier": "pro"}, "cachedAt": 1, "tenantId": "contoso"},
            {"cachedAt": 1, "tenantId": "contoso"},
        ],
    )
    def test_corrupt_entries_are_removed(self, validator, store, raw):
        store.set_item(CACHE_KEY, raw)
        assert validator.get_quick_cache_status() is None
        assert store.get_item(CACHE_KEY) is None

    def test_clear_cache(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=60)
        validator.clear_cache()
        assert store.get_item(CACHE_KEY) is None
        assert validator.get_quick_cache_status() is None


class TestQuickCacheStatus:
    def test_empty_cache(self, validator):
        assert validator.get_quick_cache_status() is None

    def test_valid_entry_usable_within_grace(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=3 * DAY)
        status = validator.get_quick_cache_status()
        assert status.is_valid is True
        assert status.is_cached is True

    def test_valid_entry_unusable_after_grace(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=8 * DAY)
        assert validator.get_quick_cache_status() is None

    def test_invalid_entry_usable_only_while_fresh(self, validator, store, clock):
        _seed(store, clock, INVALID_BODY, age=30 * 60)
        assert validator.get_quick_cache_status().is_valid is False
        clock.advance(90 * 60)
        assert validator.get_quick_cache_status() is None

    def test_unknown_tenant(self, store, clock):
        session = SessionContext(web_url="https://intranet.example.com")
        assert LicenseValidator(session, store, clock=clock).get_quick_cache_status() is None


class TestValidateLicense:
    @pytest.mark.asyncio
    async def test_returns_raw_response(self, validator):
        with patched_http("get", response=make_mock_response(json_data=INVALID_BODY)):
            response = await validator.validate_license()
        assert isinstance(response, LicenseValidationResponse)
        assert response.reason is LicenseReason.SUBSCRIPTION_EXPIRED

    @pytest.mark.asyncio
    async def test_stale_entry_within_grace(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=3 * DAY)
        with patched_http("get", side_effect=_connect_error()):
            response = await validator.validate_license()
        assert response.valid is True
        assert response.tier == "pro"

    @pytest.mark.asyncio
    async def test_server_error_outside_grace(self, validator, store, clock):
        _seed(store, clock, VALID_BODY, age=10 * DAY)
        with patched_http("get", side_effect=_connect_error()):
            response = await validator.validate_license()
        assert response.valid is False
        assert response.reason is LicenseReason.SERVER_ERROR

    @pytest.mark.asyncio
    async def test_server_error_without_cache(self, validator):
        with patched_http("get", response=make_mock_response(status_code=500)):
            response = await validator.validate_license()
        assert response.valid is False
        assert response.reason is LicenseReason.SERVER_ERROR

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, store, clock):
        session = SessionContext(web_url="https://intranet.example.com")
        validator = LicenseValidator(session, store, clock=clock)
        response = await validator.validate_license()
        assert response.valid is False
        assert response.reason is LicenseReason.INVALID_TENANT_ID


class TestHasFeature:
    def test_valid_status(self):
        status = LicenseStatus(is_valid=True, features=["favorites"])
        assert LicenseValidator.has_feature(LicenseFeature.FAVORITES, status)
        assert LicenseValidator.has_feature("favorites", status)
        assert not LicenseValidator.has_feature(LicenseFeature.SEARCH, status)

    def test_invalid_status_grants_nothing(self):
        status = LicenseStatus(is_valid=False, features=["favorites"])
        assert not LicenseValidator.has_feature(LicenseFeature.FAVORITES, status)
