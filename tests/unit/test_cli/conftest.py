"""Shared fixtures for CLI command tests."""

import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tests.helpers import WEB_URL


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """A config file pointing at the test web with storage under tmp_path."""
    path = tmp_path / "site-explorer.toml"
    path.write_text(
        "[session]\n"
        f'web_url = "{WEB_URL}"\n'
        'access_token = "cli-secret-token"\n'
        "\n"
        "[storage]\n"
        f'path = "{(tmp_path / "storage.json").as_posix()}"\n'
    )
    return path


@pytest.fixture(autouse=True)
def clean_environment():
    """Host SITE_EXPLORER_* variables must not leak into CLI runs."""
    scrubbed = {k: v for k, v in os.environ.items() if not k.startswith("SITE_EXPLORER_")}
    with patch.dict(os.environ, scrubbed, clear=True):
        yield
