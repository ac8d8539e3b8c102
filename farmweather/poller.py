"""
Fixed-interval dashboard refresh.

The dashboard re-fetches its weather snapshot every 30 minutes. The poller
owns that loop as a single asyncio task so whoever starts it can also stop
it when the view goes away; nothing keeps running after stop().
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from .aggregator import WeatherAggregator
from .schemas import WeatherResponse

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 30 * 60

UpdateCallback = Callable[[WeatherResponse], Union[None, Awaitable[None]]]


class WeatherPoller:
    """
    Fetch the dashboard snapshot immediately, then every interval_s seconds.

    Usage:
        async with WeatherPoller(aggregator, "Nairobi", on_update) as poller:
            ...
    """

    def __init__(
        self,
        aggregator: WeatherAggregator,
        location: str,
        on_update: UpdateCallback,
        interval_s: float = DEFAULT_REFRESH_SECONDS,
    ):
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.aggregator = aggregator
        self.location = location
        self.on_update = on_update
        self.interval_s = interval_s
        self.latest: Optional[WeatherResponse] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Poller is already running")
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the loop and wait for it to unwind. Safe to call when idle."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def refresh(self) -> WeatherResponse:
        """One fetch + callback, outside of the schedule."""
        result = await self.aggregator.get_dashboard_weather(self.location)
        self.latest = result
        outcome = self.on_update(result)
        if asyncio.iscoroutine(outcome):
            await outcome
        return result

    async def _run(self) -> None:
        # A broken refresh or callback must not end the schedule; cancellation still does.
        while True:
            try:
                result = await self.refresh()
            except Exception:
                logger.exception("Dashboard refresh for %r raised", self.location)
            else:
                if not result.success:
                    logger.warning("Dashboard refresh for %r failed: %s", self.location, result.error)
            await asyncio.sleep(self.interval_s)

    async def __aenter__(self) -> "WeatherPoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
