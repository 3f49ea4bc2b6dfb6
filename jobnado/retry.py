"""Bounded retry with pluggable backoff — stdlib only."""
from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Backoff = Callable[[int], float]


def linear_backoff(base_delay: float) -> Backoff:
    """Sleep ``attempt * base_delay`` seconds after the attempt-th failure."""

    def delay(attempt: int) -> float:
        return attempt * base_delay

    return delay


def no_backoff(attempt: int) -> float:
    return 0.0


def _sleep(seconds: float) -> None:
    time.sleep(seconds)


class RetryPolicy:
    """Run an operation up to ``max_attempts`` times.

    The most recent exception is re-raised unchanged once attempts are
    exhausted. Only exception types in ``retryable`` are retried; anything
    else propagates on the first failure.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: Backoff = no_backoff,
        *,
        retryable: Tuple[Type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], None] | None = None,
        name: str = "operation",
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.retryable = retryable
        self.sleep = sleep or _sleep
        self.name = name

    def execute(self, operation: Callable[[], T]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except self.retryable as exc:
                if attempt == self.max_attempts:
                    logger.error(
                        "%s failed after %d attempts: %s",
                        self.name,
                        self.max_attempts,
                        exc,
                    )
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    "%s attempt %d/%d failed (%s), retrying in %.1fs",
                    self.name,
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                if delay > 0:
                    self.sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover


def retry(
    *,
    max_attempts: int = 3,
    backoff: Backoff = no_backoff,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Decorator form of :class:`RetryPolicy`."""

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            policy = RetryPolicy(
                max_attempts,
                backoff,
                retryable=retryable,
                name=fn.__qualname__,
            )
            return policy.execute(lambda: fn(*args, **kwargs))

        return wrapper

    return decorator
