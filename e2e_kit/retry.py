"""Bounded retry with a fixed delay between attempts, built on tenacity."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_DELAY = 1.0


def retry(
    action: Callable[[], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_DELAY,
    *,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """
    Call ``action`` until it succeeds or ``max_retries`` attempts are used.

    Intermediate failures are logged and suppressed; the final attempt's
    exception propagates unchanged.  No delay follows the last attempt.

    Args:
        action: Zero-argument callable to attempt.
        max_retries: Total number of attempts (at least 1).
        delay: Seconds to wait between attempts.
        exceptions: Exception types that trigger another attempt.
        sleep: Sleep function, injectable for tests or Playwright waits.

    Returns:
        Whatever ``action`` returned on the successful attempt.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    def log_failure(state: RetryCallState) -> None:
        logger.warning(
            "Action failed, retry %d/%d: %s",
            state.attempt_number,
            max_retries,
            state.outcome.exception(),
        )

    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(exceptions),
        sleep=sleep,
        before_sleep=log_failure,
        reraise=True,
    )
    return retrying(action)


def with_retry(max_retries: int = DEFAULT_MAX_RETRIES, delay: float = DEFAULT_DELAY):
    """Decorator form of :func:`retry`."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return retry(lambda: func(*args, **kwargs), max_retries, delay)

        return wrapper

    return decorator
