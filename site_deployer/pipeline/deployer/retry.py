"""Retry with exponential backoff for coroutine operations.

Kept separate from the HTTP client so the policy can be exercised in
isolation. The sleep function is injectable so tests can run on a fake clock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]
RetryCallback = Callable[[int, BaseException, float], None]


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Return the delay before retrying after the zero-based ``attempt``."""
    return base_delay * (2**attempt)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    retries: int,
    base_delay: float,
    retry_on: tuple[type[BaseException], ...],
    sleep: SleepFunc | None = None,
    on_retry: RetryCallback | None = None,
) -> T:
    """Run ``operation`` until it succeeds or ``retries`` extra attempts are spent.

    Parameters
    ----------
    operation : Callable[[], Awaitable[T]]
        Zero-argument coroutine factory; called once per attempt.
    retries : int
        Additional attempts after the first one (``retries + 1`` in total).
    base_delay : float
        Seconds to wait after the first failure; doubled on every attempt.
    retry_on : tuple[type[BaseException], ...]
        Exception types considered transient. Anything else propagates
        immediately.
    sleep : SleepFunc | None, optional
        Awaitable sleep; defaults to ``asyncio.sleep`` looked up at call time.
    on_retry : RetryCallback | None, optional
        Called with ``(attempt_number, exception, delay)`` before each wait.

    Returns
    -------
    T
        The value returned by the first successful attempt.

    Raises
    ------
    BaseException
        The last transient exception once attempts are exhausted, or the first
        non-transient one.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= retries:
                raise
            delay = backoff_delay(base_delay, attempt)
            attempt += 1
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            await (sleep or asyncio.sleep)(delay)
