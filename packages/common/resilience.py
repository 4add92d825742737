"""Retry policies built on tenacity.

Three retry shapes are used across readyup:
- probe retries: a fixed interval between a bounded number of attempts
- restart retries: exponential backoff between restarts of a failing service
- runtime calls: short exponential retries around flaky runtime CLI calls
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry,
    retry_if_exception,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_exponential,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


def probe_retrying(
    attempts: int,
    interval: float,
    sleep: SleepFn = asyncio.sleep,
) -> AsyncRetrying:
    """Build the retry loop for a health probe.

    Each attempt yields a bool; a False result is retried after ``interval``
    seconds until ``attempts`` attempts were made. Exhaustion surfaces as
    ``tenacity.RetryError``.

    Args:
        attempts: Total number of attempts (probe ``retries``).
        interval: Seconds between attempts.
        sleep: Awaitable sleep used between attempts.

    Returns:
        AsyncRetrying: Iterable retry controller.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda healthy: not healthy),
        sleep=sleep,
    )


def restart_retrying(
    should_restart: Callable[[BaseException], bool],
    max_restarts: int | None,
    min_wait: float = 1.0,
    max_wait: float = 30.0,
    multiplier: float = 1.0,
    sleep: SleepFn = asyncio.sleep,
) -> AsyncRetrying:
    """Build the restart loop for a supervised service.

    Failures accepted by ``should_restart`` are retried with exponential
    backoff, which keeps a crash-looping service from causing a restart
    storm. Anything else, or the last failure once the budget is spent, is
    re-raised unchanged.

    Args:
        should_restart: Predicate deciding whether a failure is restarted.
        max_restarts: Restarts allowed after the first attempt (None = unbounded).
        min_wait: Minimum backoff in seconds.
        max_wait: Maximum backoff in seconds.
        multiplier: Exponential backoff multiplier.
        sleep: Awaitable sleep used between restarts.

    Returns:
        AsyncRetrying: Iterable retry controller.
    """
    stop = stop_never if max_restarts is None else stop_after_attempt(max_restarts + 1)
    return AsyncRetrying(
        stop=stop,
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        retry=retry_if_exception(should_restart),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )


def resilient_async_call(
    max_attempts: int = 3,
    min_wait: int = 1,
    max_wait: int = 10,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator for asynchronous runtime calls.

    Wraps async calls with exponential backoff retry logic. Logs warnings
    before each retry attempt.

    Args:
        max_attempts: Maximum retry attempts (default: 3).
        min_wait: Minimum wait time in seconds (default: 1).
        max_wait: Maximum wait time in seconds (default: 10).
        retry_on: Exception types to retry on (default: all exceptions).

    Returns:
        Callable: Decorated async function with retry logic.

    Example:
        >>> @resilient_async_call(max_attempts=3, retry_on=(RuntimeCommandError,))
        ... async def inspect(name: str) -> bool:
        ...     ...
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


__all__ = ["SleepFn", "probe_retrying", "resilient_async_call", "restart_retrying"]
