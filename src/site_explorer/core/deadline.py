"""Deadline guard for remote calls.

``with_timeout`` waits for an awaitable for at most ``timeout`` seconds. On
expiry it raises ``DeadlineExceededError`` but leaves the operation running:
its eventual result or exception is retrieved and dropped so the event loop
never reports "exception was never retrieved".
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from site_explorer.core.errors.resilience import DeadlineExceededError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 30.0


def _discard_outcome(task: "asyncio.Future[object]") -> None:
    """Consume the outcome of an abandoned operation."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned operation finished with %s: %s", type(exc).__name__, exc)


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    message: Optional[str] = None,
) -> T:
    """Race ``awaitable`` against a timer.

    Args:
        awaitable: Coroutine, task or future to wait for.
        timeout: Deadline in seconds.
        message: Error message used on expiry.

    Returns:
        The awaitable's result if it settles in time.

    Raises:
        DeadlineExceededError: If the deadline passes first.
        Exception: Whatever the awaitable raises before the deadline.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.add_done_callback(_discard_outcome)
        raise

    if task in done:
        return task.result()

    task.add_done_callback(_discard_outcome)
    logger.warning("Operation exceeded its %.1fs deadline", timeout)
    raise DeadlineExceededError(
        message or f"Request timed out after {timeout:g} seconds",
        timeout_seconds=timeout,
    )
