"""Bounded exponential-backoff retry for asynchronous remote calls."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 3
DEFAULT_BASE_DELAY = 2.0

Sleep = Callable[[float], Awaitable[None]]


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Classify an error as a remote rate-limit / quota condition.

    Matches an HTTP status of 429, a numeric or string code of 429, or an
    error message mentioning "429" or "quota".
    """
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if value == 429 or value == "429":
            return True
        if isinstance(value, str) and "quota" in value.lower():
            return True

    message = str(error)
    return "429" in message or "quota" in message.lower()


@dataclass(frozen=True)
class RetryPolicy:
    """How often, how patiently and on what to retry.

    ``retries`` counts attempts after the first one; the wait before retry
    ``n`` (0-based) is ``base_delay * 2 ** n`` seconds.
    """

    retries: int = DEFAULT_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    retry_on: Callable[[BaseException], bool] = is_rate_limit_error
    label: str = "Rate limit hit"

    def delay_for(self, retry_index: int) -> float:
        return self.base_delay * (2 ** retry_index)


RATE_LIMIT_POLICY = RetryPolicy()


async def retry_attempts(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy = RATE_LIMIT_POLICY,
    sleep: Optional[Sleep] = None,
) -> T:
    """
    Run ``operation(attempt)`` until it succeeds or the policy gives up.

    Args:
        operation: Coroutine factory receiving the 0-based attempt number
        policy: Retry policy (budget, backoff and retryable predicate)
        sleep: Awaitable sleep used between attempts (injectable for tests)

    Returns:
        The operation's result, unchanged

    Raises:
        Exception: The first non-retryable error, or the last retryable one
            once the budget is exhausted
    """
    sleep = sleep or asyncio.sleep
    attempt = 0

    while True:
        try:
            return await operation(attempt)
        except Exception as e:
            retries_left = policy.retries - attempt
            if retries_left <= 0 or not policy.retry_on(e):
                raise

            wait_time = policy.delay_for(attempt)
            logger.warning(
                f"{policy.label}. Retrying in {wait_time:.1f}s... "
                f"(Retries left: {retries_left})"
            )
            if wait_time > 0:
                await sleep(wait_time)
            attempt += 1


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = RATE_LIMIT_POLICY,
    sleep: Optional[Sleep] = None,
) -> T:
    """Retry a zero-argument coroutine factory under ``policy``."""
    return await retry_attempts(lambda _attempt: operation(), policy, sleep)
