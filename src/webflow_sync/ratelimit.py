"""Rate Limiting Module

Spaces out calls to the Webflow API so that consecutive calls never start
closer together than a configured minimum interval. Callers are admitted in
submission order; completion order is not constrained.

The spacing itself is a pyrate-limiter bucket holding one slot per interval.
Acquisition polls the bucket without blocking so the event loop keeps
running while a caller waits for its slot.
"""

import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional, TypeVar

from pyrate_limiter import Limiter, Rate

logger = logging.getLogger(__name__)

T = TypeVar("T")

BUCKET_NAME = "webflow"
POLL_INTERVAL_S = 0.025


class RateLimiter:
    """Minimum-interval scheduler for coroutine calls.

    Example:
        >>> limiter = RateLimiter(min_interval_ms=400)
        >>> page = await limiter.schedule(lambda: client.get_items(cid, 100, 0))
    """

    def __init__(
        self,
        min_interval_ms: float,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval_ms < 0:
            raise ValueError(f"min_interval_ms must be >= 0, got {min_interval_ms}")
        self.min_interval = min_interval_ms / 1000.0
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._limiter: Optional[Limiter] = None
        if min_interval_ms > 0:
            interval_ms = math.ceil(min_interval_ms)
            self._limiter = Limiter(
                [Rate(1, interval_ms)],
                raise_when_fail=False,
                max_delay=None,
            )

    async def _acquire(self) -> None:
        if self._limiter is None:
            return
        waited = 0.0
        while not self._limiter.try_acquire(BUCKET_NAME, weight=1):
            await self._sleep(POLL_INTERVAL_S)
            waited += POLL_INTERVAL_S
        if waited:
            logger.debug("Rate limit: waited ~%.3fs before next call", waited)

    async def schedule(self, call: Callable[[], Awaitable[T]]) -> T:
        """Run ``call`` once its start slot is reached and return its result.

        Exceptions raised by ``call`` propagate unchanged.
        """
        async with self._lock:
            await self._acquire()
        return await call()
