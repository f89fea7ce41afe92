"""Implementation of a delay-based rate limiter.

Spaces outgoing requests by a fixed wait before each call. This is a blunt
per-call throttle, not a token bucket: there is no queue and no coordination
between concurrent callers, each caller simply sleeps before its own call.
"""

import asyncio
import logging

from mktocli.domain.events.api_events import ApiCallDeferred, dispatch_event

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.0


class RateLimiter:
    """Suspends the current task for a configured interval before each call."""

    def __init__(self, delay_seconds: float = DEFAULT_DELAY_SECONDS):
        """Initializes the RateLimiter.

        Args:
            delay_seconds: Seconds to wait before every outbound call. 0 disables throttling.
        """
        if delay_seconds is None:
            delay_seconds = DEFAULT_DELAY_SECONDS
        if delay_seconds < 0:
            raise ValueError("Delay must be zero or positive.")
        self.delay_seconds = float(delay_seconds)
        logger.info(f"RateLimiter initialized: {self.delay_seconds}s delay between calls.")

    @property
    def enabled(self) -> bool:
        return self.delay_seconds > 0

    async def throttle(self) -> None:
        """Waits for the configured interval, or returns immediately when it is zero."""
        if self.delay_seconds > 0:
            dispatch_event(ApiCallDeferred(wait_time_seconds=self.delay_seconds))
            logger.debug(f"Throttling: waiting {self.delay_seconds:.2f}s before next call.")
            await self.delay(self.delay_seconds)

    @staticmethod
    async def delay(seconds: float) -> None:
        """Suspends the calling task for ``seconds`` and resumes."""
        await asyncio.sleep(seconds)
