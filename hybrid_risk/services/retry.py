"""
Retry policy with exponential backoff for calls to remote services.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Up to ``max_retries`` further attempts after the first one, waiting
    ``base_delay * 2 ** n`` seconds before retry ``n`` (0-based).

    ``sleep`` is injectable so tests can record delays instead of waiting. Cancelling the
    awaiting task interrupts a pending sleep; cancellation is never retried.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def backoff(self, retry_number: int) -> float:
        return self.base_delay * (2 ** retry_number)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_on: tuple[type[Exception], ...],
    ) -> T:
        attempt = 0
        while True:
            try:
                return await operation()
            except retry_on as exc:
                if attempt >= self.max_retries:
                    raise
                delay = self.backoff(attempt)
                attempt += 1
                logger.warning(
                    "Attempt failed (%s) — retry %d/%d in %.1fs",
                    exc, attempt, self.max_retries, delay,
                )
                await self.sleep(delay)
