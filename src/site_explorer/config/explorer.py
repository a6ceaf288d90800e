"""ExplorerConfig dataclass and global configuration state.

Loading logic lives in the ``_ExplorerConfigLoader`` mixin (``loader.py``).
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from site_explorer.config.domains import DirectorySettings, SessionSettings, StorageSettings
from site_explorer.config.loader import _ExplorerConfigLoader
from site_explorer.core.errors.base import CategorizedError, ErrorCategory
from site_explorer.core.license.validator import LicenseSettings
from site_explorer.core.redaction import REDACTED
from site_explorer.core.session import SessionContext
from site_explorer.core.storage import FileKeyValueStore


@dataclass
class ExplorerConfig(_ExplorerConfigLoader):
    """Configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    session: SessionSettings = field(default_factory=SessionSettings)
    directory: DirectorySettings = field(default_factory=DirectorySettings)
    license: LicenseSettings = field(default_factory=LicenseSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)

    def build_session(self) -> SessionContext:
        """Session context for the configured web.

        Raises:
            CategorizedError: If no web URL is configured
        """
        if not self.session.web_url:
            raise CategorizedError(
                "No web URL configured. Set SITE_EXPLORER_WEB_URL or [session].web_url.",
                category=ErrorCategory.VALIDATION,
            )
        return SessionContext(
            web_url=self.session.web_url,
            site_url=self.session.site_url,
            access_token=self.session.access_token,
        )

    def build_store(self) -> FileKeyValueStore:
        return FileKeyValueStore(self.storage.path)

    def to_dict(self) -> Dict[str, Any]:
        """Effective configuration with secrets redacted."""
        data = asdict(self)
        if data["session"].get("access_token"):
            data["session"]["access_token"] = REDACTED
        data["storage"]["path"] = str(self.storage.path)
        return data

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("site_explorer")
        root_logger.setLevel(level)
        for existing in list(root_logger.handlers):
            if getattr(existing, "_site_explorer_handler", False):
                root_logger.removeHandler(existing)
        handler._site_explorer_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[ExplorerConfig] = None


def get_config() -> ExplorerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ExplorerConfig.from_env()
    return _config


def set_config(config: Optional[ExplorerConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
