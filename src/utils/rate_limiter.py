"""Fixed-delay rate limiting for catalog API calls.

The Discogs search API allows roughly one request per second for
authenticated clients.  The candidate finder does not schedule or retry
requests: it simply pauses for a fixed interval after every search.  That
pause lives here as an injectable policy object so tests can substitute a
no-op sleep and record how often the pipeline paused.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from src.utils.logging import get_logger

SleepFunc = Callable[[float], Awaitable[None]]

DEFAULT_DELAY_SECONDS = 1.1


class FixedDelayRateLimiter:
    """Blocking pause of ``delay`` seconds applied after each external call.

    Parameters
    ----------
    delay:
        Seconds to wait per call.  ``0`` disables the pause.
    sleep:
        Awaitable sleep function; defaults to :func:`asyncio.sleep`.
    """

    def __init__(
        self,
        delay: float = DEFAULT_DELAY_SECONDS,
        sleep: SleepFunc | None = None,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._delay = delay
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._pauses = 0
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pause_count(self) -> int:
        """Number of pauses taken since construction."""
        return self._pauses

    async def pause(self) -> None:
        """Wait the configured interval."""
        self._pauses += 1
        if self._delay <= 0:
            return
        self._logger.debug("rate_limit_pause", delay=self._delay)
        await self._sleep(self._delay)
