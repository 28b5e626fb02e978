"""
Bounded Retry Helper

One retry policy shared by the platform adapters and the sync commit step,
built on tenacity.

Usage:
    from tracker.utils.retry import call_with_retry, is_transient_http_error

    data = await call_with_retry(
        fetch_json, url,
        max_attempts=settings.PLATFORM_RETRY_ATTEMPTS,
        backoff_seconds=settings.PLATFORM_RETRY_BACKOFF_SECONDS,
        retry_if=is_transient_http_error,
    )
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from sqlalchemy.exc import OperationalError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound on a single backoff sleep, as a multiple of the base backoff
MAX_BACKOFF_FACTOR = 8


def is_transient_http_error(exc: BaseException) -> bool:
    """Network failures, timeouts, HTTP 429 and 5xx are worth another try."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def is_transient_db_error(exc: BaseException) -> bool:
    """Connection-level database errors (not constraint violations)."""
    return isinstance(exc, OperationalError)


async def call_with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    retry_if: Callable[[BaseException], bool] = is_transient_http_error,
    **kwargs: Any,
) -> T:
    """
    Await fn(*args, **kwargs), retrying errors accepted by retry_if.

    Waits grow exponentially from backoff_seconds. The last error is
    re-raised unchanged once attempts run out or a non-retryable error
    occurs.

    Args:
        fn: Coroutine function to call
        max_attempts: Total attempts including the first (>= 1)
        backoff_seconds: Base wait between attempts; 0 disables waiting
        retry_if: Predicate selecting retryable exceptions

    Raises:
        ValueError: If max_attempts is below 1
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=backoff_seconds,
            min=0,
            max=backoff_seconds * MAX_BACKOFF_FACTOR,
        ),
        retry=retry_if_exception(retry_if),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await fn(*args, **kwargs)
