"""Section configuration dataclasses.

Small, focused classes for the ``[session]``, ``[directory]``, ``[license]``
and ``[storage]`` TOML sections.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from site_explorer.config.parsing import _parse_positive_float, _parse_positive_int
from site_explorer.core.deadline import DEFAULT_TIMEOUT_SECONDS
from site_explorer.core.directory.fetcher import DEFAULT_CACHE_TTL_SECONDS
from site_explorer.core.directory.parsing import DEFAULT_ROW_LIMIT
from site_explorer.core.license.validator import LicenseSettings
from site_explorer.core.storage import DEFAULT_STORAGE_PATH


@dataclass
class SessionSettings:
    """Where the user is and how to authenticate.

    Attributes:
        web_url: Absolute URL of the current web
        site_url: Absolute URL of the current site collection (defaults to web_url)
        access_token: Bearer token for the search API
    """

    web_url: Optional[str] = None
    site_url: Optional[str] = None
    access_token: Optional[str] = None

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "SessionSettings":
        return cls(
            web_url=data.get("web_url") or None,
            site_url=data.get("site_url") or None,
            access_token=data.get("access_token") or None,
        )


@dataclass
class DirectorySettings:
    """Site directory fetch settings.

    Attributes:
        request_timeout: Deadline for the search call (seconds)
        cache_ttl_seconds: Lifetime of the in-memory site list
        row_limit: Maximum rows requested from the search API
    """

    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    row_limit: int = DEFAULT_ROW_LIMIT

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "DirectorySettings":
        return cls(
            request_timeout=_parse_positive_float(
                data.get("request_timeout", DEFAULT_TIMEOUT_SECONDS),
                DEFAULT_TIMEOUT_SECONDS,
                "directory.request_timeout",
            ),
            cache_ttl_seconds=_parse_positive_float(
                data.get("cache_ttl_seconds", DEFAULT_CACHE_TTL_SECONDS),
                DEFAULT_CACHE_TTL_SECONDS,
                "directory.cache_ttl_seconds",
            ),
            row_limit=_parse_positive_int(
                data.get("row_limit", DEFAULT_ROW_LIMIT),
                DEFAULT_ROW_LIMIT,
                "directory.row_limit",
            ),
        )


_LICENSE_NUMERIC_FIELDS = (
    "valid_ttl_hours",
    "invalid_ttl_hours",
    "grace_days",
    "request_timeout",
)


def license_settings_from_toml_dict(data: Dict[str, Any]) -> LicenseSettings:
    """Create ``LicenseSettings`` from the ``[license]`` section."""
    defaults = LicenseSettings()
    values: Dict[str, Any] = {}
    for f in fields(LicenseSettings):
        if f.name not in data:
            continue
        default = getattr(defaults, f.name)
        if f.name in _LICENSE_NUMERIC_FIELDS:
            values[f.name] = _parse_positive_float(data[f.name], default, f"license.{f.name}")
        else:
            values[f.name] = str(data[f.name])
    return LicenseSettings(**values)


@dataclass
class StorageSettings:
    """Persisted cache location.

    Attributes:
        path: JSON document holding the license cache
    """

    path: Path = DEFAULT_STORAGE_PATH

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "StorageSettings":
        path = data.get("path")
        return cls(path=Path(path).expanduser() if path else DEFAULT_STORAGE_PATH)
