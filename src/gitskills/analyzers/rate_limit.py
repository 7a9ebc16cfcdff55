"""Rate limit tracking for GitHub API surfaces."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from gitskills.models.schemas import RateState

logger = logging.getLogger(__name__)


class RateLimiter:
    """Computes and performs waits for one rate-limited API surface.

    GitHub meters the core REST API and the search API separately, so each
    surface gets its own limiter. The limiter only ever waits; it never
    raises, so quota exhaustion is invisible to callers apart from the delay.

    Usage:
        limiter = RateLimiter("core", low_water_mark=10)
        await limiter.wait_if_needed(RateState.from_headers(response.headers))
    """

    def __init__(
        self,
        name: str,
        low_water_mark: int,
        safety_margin: float = 2.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            name: Surface name used in log messages.
            low_water_mark: Wait when remaining quota drops below this.
            safety_margin: Seconds to wait past the reported reset time.
            clock: Returns the current epoch time in seconds.
            sleep: Coroutine function used to suspend.
        """
        self.name = name
        self.low_water_mark = low_water_mark
        self.safety_margin = safety_margin
        self._clock = clock
        self._sleep = sleep

        self.state: RateState | None = None
        self.total_waited: float = 0.0

    def observe(self, state: RateState | None) -> None:
        """Record the most recent rate state, ignoring missing snapshots."""
        if state is not None:
            self.state = state

    def wait_seconds(self, state: RateState | None = None) -> float:
        """Return how long to wait given a rate state (default: last observed)."""
        state = state or self.state
        if state is None:
            return 0.0
        if state.remaining >= self.low_water_mark or state.reset_at <= 0:
            return 0.0

        wait = state.reset_at + self.safety_margin - self._clock()
        return wait if wait > 0 else 0.0

    async def wait_if_needed(self, state: RateState | None = None) -> float:
        """Observe a rate state and sleep until reset if quota is low.

        Returns:
            Seconds slept (0.0 if no wait was necessary).
        """
        self.observe(state)
        wait = self.wait_seconds()
        if wait <= 0:
            return 0.0

        logger.warning(
            f"GitHub {self.name} rate limit low (remaining: {self.state.remaining}). "
            f"Waiting {wait:.0f}s..."
        )
        await self._sleep(wait)
        self.total_waited += wait
        return wait
