"""Value parsing helpers shared by TOML and environment loading.

Invalid numeric values fall back to the supplied default and log a warning,
so one bad setting never prevents startup.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _parse_positive_float(value: Any, default: float, name: str) -> float:
    """Parse a strictly positive number, or warn and return ``default``."""
    try:
        if isinstance(value, bool):
            raise ValueError("booleans are not numbers")
        parsed = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid value for %s: %r (using %s)", name, value, default)
        return default
    if parsed <= 0:
        logger.warning("%s must be positive, got %r (using %s)", name, value, default)
        return default
    return parsed


def _parse_positive_int(value: Any, default: int, name: str) -> int:
    """Parse a strictly positive integer, or warn and return ``default``."""
    try:
        if isinstance(value, bool):
            raise ValueError("booleans are not numbers")
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid value for %s: %r (using %s)", name, value, default)
        return default
    if parsed <= 0:
        logger.warning("%s must be positive, got %r (using %s)", name, value, default)
        return default
    return parsed


def _parse_log_level(value: Any, default: str = "INFO") -> str:
    level = str(value).strip().upper()
    if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return level
    logger.warning("Invalid log level %r (using %s)", value, default)
    return default
