from __future__ import annotations

"""
Fixed-delay retry helper for shared-store reads.

The retrying product read spaces a bounded number of attempts by a constant
delay; there is no exponential growth and no jitter, so the worst-case wait is
``max_retries * delay`` on top of the attempts themselves.
"""


import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .error_types import REDIS_ERRORS

_ResultT = TypeVar("_ResultT")


@dataclass(frozen=True)
class FixedDelayRetryPolicy:
    """One initial attempt followed by up to ``max_retries`` retries."""

    max_retries: int = 3
    delay_seconds: float = 1.0
    retry_exceptions: Tuple[Type[BaseException], ...] = REDIS_ERRORS

    @property
    def max_attempts(self) -> int:
        return max(0, self.max_retries) + 1


@dataclass(frozen=True)
class RetryContext:
    """Metadata supplied to retry callbacks."""

    attempt: int
    max_attempts: int
    delay: float
    exception: BaseException


class RetryExhaustedError(RuntimeError):
    """Raised when a retryable operation fails on every attempt."""


RetryCallback = Callable[[RetryContext], Optional[Awaitable[None]]]


async def execute_with_retry(
    operation: Callable[[int], Awaitable[_ResultT]],
    *,
    policy: FixedDelayRetryPolicy,
    logger: logging.Logger,
    context: str,
    on_retry: Optional[RetryCallback] = None,
) -> _ResultT:
    """
    Execute ``operation`` under ``policy``.

    Args:
        operation: Callable invoked for each attempt; receives the 1-based attempt index.
        policy: Attempt count and delay.
        logger: Logger used for default retry messages.
        context: Label describing the operation (used in logs).
        on_retry: Optional callable invoked before each retry with details.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RetryExhaustedError: When every attempt raised one of ``policy.retry_exceptions``.
    """

    max_attempts = policy.max_attempts
    delay = max(0.0, policy.delay_seconds)

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation(attempt)
        except policy.retry_exceptions as exc:
            if attempt >= max_attempts:
                raise RetryExhaustedError(f"{context} failed after {attempt} attempt(s)") from exc

            retry_context = RetryContext(attempt=attempt, max_attempts=max_attempts, delay=delay, exception=exc)
            if on_retry is not None:
                result = on_retry(retry_context)
                if result is not None:
                    await result
            else:
                logger.warning(
                    "%s failed on attempt %s/%s; retrying in %.2fs (%s)",
                    context,
                    attempt,
                    max_attempts,
                    delay,
                    exc,
                )

            await asyncio.sleep(delay)

    raise RetryExhaustedError(f"{context} failed: unexpected retry loop exit")


__all__ = [
    "FixedDelayRetryPolicy",
    "RetryContext",
    "RetryExhaustedError",
    "execute_with_retry",
]
