from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from duochat.config.schema import RetrySettings
from duochat.dispatch.errors import UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_overloaded(error: BaseException) -> bool:
    return isinstance(error, UpstreamError) and error.is_overloaded


@dataclass
class RetryPolicy:
    """Exponential backoff for a single upstream call.

    ``max_attempts`` counts every try, the first one included. Only errors
    accepted by ``should_retry`` are retried; anything else is raised at once.
    """

    max_attempts: int = 4
    base_delay: float = 1.0
    max_jitter: float = 1.0
    should_retry: Callable[[BaseException], bool] = is_overloaded
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    jitter: Callable[[float, float], float] = field(default=random.uniform)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> RetryPolicy:
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            max_jitter=settings.max_jitter,
        )

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2**attempt) + self.jitter(0.0, self.max_jitter)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as e:
                logger.info("Attempt %d/%d failed: %s", attempt + 1, self.max_attempts, e)
                if not self.should_retry(e):
                    logger.info("Error is not retryable, giving up")
                    raise
                if attempt + 1 >= self.max_attempts:
                    logger.warning("Retries exhausted after %d attempts", self.max_attempts)
                    raise
                delay = self.delay_for(attempt)
                logger.info("Retrying in %dms", round(delay * 1000))
                await self.sleep(delay)
        raise RuntimeError("max_attempts must be at least 1")


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 4,
    base_delay: float = 1.0,
    max_jitter: float = 1.0,
) -> T:
    policy = RetryPolicy(max_attempts=max_attempts, base_delay=base_delay, max_jitter=max_jitter)
    return await policy.run(operation)
