"""ExplorerConfig loading logic.

Provides ``_ExplorerConfigLoader``, a mixin whose methods are inherited by
``ExplorerConfig`` (defined in ``explorer.py``), keeping field definitions and
loading logic in separate modules.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, cast

if TYPE_CHECKING:
    from site_explorer.config.explorer import ExplorerConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from site_explorer.config.domains import (
    DirectorySettings,
    SessionSettings,
    StorageSettings,
    license_settings_from_toml_dict,
)
from site_explorer.config.parsing import (
    _parse_log_level,
    _parse_positive_float,
    _parse_positive_int,
    _try_parse_bool,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "SITE_EXPLORER_"


class _ExplorerConfigLoader:
    """Mixin providing config-loading methods for ``ExplorerConfig``."""

    if TYPE_CHECKING:
        log_level: str
        structured_logging: bool
        session: SessionSettings
        directory: DirectorySettings
        license: Any
        storage: StorageSettings

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ExplorerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables (SITE_EXPLORER_*)
        2. Project TOML config (./site-explorer.toml)
        3. User TOML config (~/.site-explorer.toml)
        4. XDG config (~/.config/site-explorer/config.toml)
        5. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "site-explorer" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug("Loaded XDG config from %s", xdg_config)

            home_config = Path.home() / ".site-explorer.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug("Loaded user config from %s", home_config)

            project_config = Path("site-explorer.toml")
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug("Loaded project config from %s", project_config)

        config._load_env()
        return cast("ExplorerConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from a TOML file; errors are logged, not raised."""
        if not path.exists():
            logger.warning("Config file not found: %s", path)
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if "logging" in data:
                log = data["logging"]
                if "level" in log:
                    self.log_level = _parse_log_level(log["level"], self.log_level)
                if "structured" in log:
                    structured = _try_parse_bool(log["structured"])
                    if structured is None:
                        logger.warning("Invalid logging.structured value: %r", log["structured"])
                    else:
                        self.structured_logging = structured

            if "session" in data:
                self.session = SessionSettings.from_toml_dict(data["session"])

            if "directory" in data:
                self.directory = DirectorySettings.from_toml_dict(data["directory"])

            if "license" in data:
                self.license = license_settings_from_toml_dict(data["license"])

            if "storage" in data:
                self.storage = StorageSettings.from_toml_dict(data["storage"])

        except Exception as e:
            logger.error("Error loading config file %s: %s", path, e)

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = _parse_log_level(level, self.log_level)
        if structured := os.environ.get(f"{ENV_PREFIX}STRUCTURED_LOGGING"):
            parsed = _try_parse_bool(structured)
            if parsed is not None:
                self.structured_logging = parsed

        # Session
        if web_url := os.environ.get(f"{ENV_PREFIX}WEB_URL"):
            self.session.web_url = web_url
        if site_url := os.environ.get(f"{ENV_PREFIX}SITE_URL"):
            self.session.site_url = site_url
        if token := os.environ.get(f"{ENV_PREFIX}ACCESS_TOKEN"):
            self.session.access_token = token

        # Site directory
        if timeout := os.environ.get(f"{ENV_PREFIX}REQUEST_TIMEOUT"):
            self.directory.request_timeout = _parse_positive_float(
                timeout, self.directory.request_timeout, f"{ENV_PREFIX}REQUEST_TIMEOUT"
            )
        if ttl := os.environ.get(f"{ENV_PREFIX}SITE_CACHE_TTL"):
            self.directory.cache_ttl_seconds = _parse_positive_float(
                ttl, self.directory.cache_ttl_seconds, f"{ENV_PREFIX}SITE_CACHE_TTL"
            )
        if row_limit := os.environ.get(f"{ENV_PREFIX}ROW_LIMIT"):
            self.directory.row_limit = _parse_positive_int(
                row_limit, self.directory.row_limit, f"{ENV_PREFIX}ROW_LIMIT"
            )

        # License
        if api_url := os.environ.get(f"{ENV_PREFIX}LICENSE_API_URL"):
            self.license.api_base_url = api_url
        if product := os.environ.get(f"{ENV_PREFIX}PRODUCT_ID"):
            self.license.product_id = product
        if domain := os.environ.get(f"{ENV_PREFIX}PLATFORM_DOMAIN"):
            self.license.platform_domain = domain
        if license_timeout := os.environ.get(f"{ENV_PREFIX}LICENSE_TIMEOUT"):
            self.license.request_timeout = _parse_positive_float(
                license_timeout, self.license.request_timeout, f"{ENV_PREFIX}LICENSE_TIMEOUT"
            )

        # Storage
        if storage_path := os.environ.get(f"{ENV_PREFIX}STORAGE_PATH"):
            self.storage.path = Path(storage_path).expanduser()
