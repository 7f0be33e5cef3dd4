"""Bounded retry with exponential backoff for transient failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from kanban_agents.llm.errors import LLMResponseError, LLMTimeoutError, LLMTransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_MARKERS = (
    "timeout",
    "timed out",
    "network",
    "connection",
    "econnrefused",
    "etimedout",
    "eai_again",
    "temporary",
    "rate limit",
)


def is_retryable_error(exc: BaseException) -> bool:
    if isinstance(exc, LLMResponseError):
        return False
    if isinstance(exc, (LLMTimeoutError, LLMTransientError)):
        return True
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in RETRYABLE_MARKERS)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    initial_delay_s: float = 1.0,
    max_delay_s: float = 5.0,
    multiplier: float = 2.0,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
) -> T:
    """Run ``operation`` up to ``max_retries + 1`` times.

    Only errors accepted by ``is_retryable`` are retried; anything else is
    raised on the first occurrence.
    """
    delay = initial_delay_s
    attempts = max_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if attempt >= attempts or not is_retryable(exc):
                raise
            logger.warning(
                "Attempt %s/%s failed (%s), retrying in %.2fs", attempt, attempts, exc, delay
            )
            if delay > 0:
                await asyncio.sleep(delay)
            delay = min(delay * multiplier, max_delay_s)
    raise RuntimeError("retry loop exited without a result")
