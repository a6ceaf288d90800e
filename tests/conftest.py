"""Shared fixtures: session, in-memory store, fake clock, isolated config."""

import logging

import pytest

from site_explorer.config.explorer import set_config
from site_explorer.core.session import SessionContext
from site_explorer.core.storage import MemoryKeyValueStore
from tests.helpers import WEB_URL, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return SessionContext(web_url=WEB_URL, access_token="test-access-token")


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture(autouse=True)
def reset_global_config():
    """Each test starts without a cached global configuration or CLI log handler."""
    set_config(None)
    package_logger = logging.getLogger("site_explorer")
    level = package_logger.level
    handlers = list(package_logger.handlers)
    yield
    set_config(None)
    package_logger.setLevel(level)
    package_logger.handlers[:] = handlers
