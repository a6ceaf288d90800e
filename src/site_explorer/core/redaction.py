"""Secret redaction for log lines and error text.

SECURITY: bearer tokens and API keys must never reach logs, error messages or
CLI output. Run any text that may echo request details through
``redact_secrets`` first.
"""

from __future__ import annotations

import re
from typing import Dict

# Potential API keys / bearer tokens in strings
_SECRET_PATTERN = re.compile(
    r"(?i)"
    r"(?:"
    r"(?:api[_-]?key|access[_-]?token|token|bearer|authorization|secret|password)"
    r"[\s:=]+"
    r")"
    r"['\"]?([^\s'\"]{8,})['\"]?",
)

# Headers that should never appear in logs/errors
_SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "x-api-key",
        "api-key",
        "cookie",
        "set-cookie",
        "proxy-authorization",
    }
)

REDACTED = "****"


def redact_secrets(text: str) -> str:
    """Replace the secret portion of ``token=...``-style fragments.

    Args:
        text: Input text that may contain secrets.

    Returns:
        Text with secrets replaced by ``"****"``.
    """
    if not text:
        return text

    def _replace(match: re.Match) -> str:
        return match.group(0).replace(match.group(1), REDACTED)

    return _SECRET_PATTERN.sub(_replace, text)


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of ``headers`` with sensitive values redacted."""
    return {
        key: (REDACTED if key.lower() in _SENSITIVE_HEADERS else value)
        for key, value in headers.items()
    }
