import asyncio
from datetime import timedelta

from django.test import SimpleTestCase

from assessments.timer import SessionTimer, remaining_seconds

from .factories import FakeClock


class RemainingSecondsTests(SimpleTestCase):
    def test_derived_from_persisted_start(self):
        clock = FakeClock()
        started_at = clock.now - timedelta(seconds=1200)
        self.assertEqual(remaining_seconds(started_at, 1800, clock.now), 600)

    def test_never_negative(self):
        clock = FakeClock()
        self.assertEqual(remaining_seconds(clock.now - timedelta(hours=2), 1800, clock.now), 0)

    def test_partial_seconds_do_not_count(self):
        clock = FakeClock()
        self.assertEqual(remaining_seconds(clock.now - timedelta(seconds=10, milliseconds=900), 60, clock.now), 50)


class SessionTimerTests(SimpleTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.expired = 0
        self.ticks = []

    async def on_expire(self):
        self.expired += 1

    def make(self, started_ago, limit=1800):
        return SessionTimer(
            self.clock.now - timedelta(seconds=started_ago),
            limit,
            on_expire=self.on_expire,
            clock=self.clock,
            interval=0,
            on_tick=self.ticks.append,
        )

    async def test_resumed_timer_ignores_client_elapsed_time(self):
        timer = self.make(started_ago=1200)

        self.assertEqual(await timer.tick(), 600)
        self.assertEqual(timer.elapsed(), 1200)
        self.assertEqual(self.expired, 0)

    async def test_expires_once(self):
        timer = self.make(started_ago=1799)
        await timer.tick()
        self.clock.advance(1)

        self.assertEqual(await timer.tick(), 0)
        self.assertEqual(await timer.tick(), 0)
        self.assertEqual(self.expired, 1)
        self.assertTrue(timer.expired)

    async def test_run_counts_down_until_expiry(self):
        timer = self.make(started_ago=0, limit=3)
        original_tick = timer.tick

        async def tick_and_advance():
            remaining = await original_tick()
            self.clock.advance(1)
            return remaining

        timer.tick = tick_and_advance
        await timer.start()

        self.assertEqual(self.ticks, [3, 2, 1, 0])
        self.assertEqual(self.expired, 1)

    async def test_already_expired_on_resume(self):
        timer = self.make(started_ago=5000)
        await timer.start()
        self.assertEqual(self.ticks, [0])
        self.assertEqual(self.expired, 1)

    async def test_cancel_stops_the_countdown(self):
        timer = SessionTimer(self.clock.now, 1800, on_expire=self.on_expire, clock=self.clock, interval=60)
        task = timer.start()
        timer.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(task.cancelled())
        self.assertEqual(self.expired, 0)
