"""Deadline error raised by the timeout guard."""

from __future__ import annotations

from typing import Optional

from site_explorer.core.errors.base import CategorizedError, ErrorCategory


class DeadlineExceededError(CategorizedError):
    """A remote operation did not settle before its deadline.

    Always a NETWORK failure. Carries the synthetic ``"timeout"`` status and
    the HTTP 408 code so status-based handling treats it like a request
    timeout.

    Attributes:
        timeout_seconds: The deadline that was exceeded
        status: Always ``"timeout"``
        status_code: Always 408
    """

    category = ErrorCategory.NETWORK
    status = "timeout"
    status_code = 408

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        context: Optional[str] = None,
    ):
        super().__init__(message, context=context)
        self.timeout_seconds = timeout_seconds

    def to_dict(self):
        out = super().to_dict()
        out["status"] = self.status
        if self.timeout_seconds is not None:
            out["timeout_seconds"] = self.timeout_seconds
        return out
