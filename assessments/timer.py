"""Countdown for a test session.

Remaining time is always derived from the attempt's persisted start time, so
reloading the page or reconnecting never grants extra time.
"""
import asyncio
import logging

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


def remaining_seconds(started_at, time_limit_seconds, now):
    elapsed = int((now - started_at).total_seconds())
    return max(0, time_limit_seconds - elapsed)


class SessionTimer:
    def __init__(self, started_at, time_limit_seconds, on_expire, clock=timezone.now, interval=None, on_tick=None):
        self.started_at = started_at
        self.time_limit_seconds = time_limit_seconds
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.clock = clock
        self.interval = settings.ASSESSMENTS_TIMER_INTERVAL_SECONDS if interval is None else interval
        self.expired = False
        self._task = None

    def remaining(self):
        return remaining_seconds(self.started_at, self.time_limit_seconds, self.clock())

    def elapsed(self):
        return self.time_limit_seconds - self.remaining()

    async def tick(self):
        """Recompute the remaining time; fires ``on_expire`` once when it hits zero."""
        remaining = self.remaining()
        if self.on_tick:
            self.on_tick(remaining)
        if remaining == 0 and not self.expired:
            self.expired = True
            logger.info("Time limit of %ss reached", self.time_limit_seconds)
            await self.on_expire()
        return remaining

    async def run(self):
        while await self.tick() > 0:
            await asyncio.sleep(self.interval)

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def cancel(self):
        # The expiry callback runs inside the timer task; it must not cancel itself.
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()
