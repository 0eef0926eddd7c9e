"""One student's live test-taking session.

An ``AttemptSession`` owns the autosave coordinator and the countdown for a single
attempt and talks to the engine through an async gateway. Manual and
time-up submissions share one path: flush buffered answers, then submit once.
"""
import asyncio
import logging
from typing import NamedTuple

from asgiref.sync import sync_to_async
from django.utils import timezone

from .autosave import AutosaveCoordinator
from .exceptions import AttemptLockedError
from .lifecycle import AttemptLifecycle
from .timer import SessionTimer

logger = logging.getLogger(__name__)


class LocalAttemptGateway:
    """Async facade over an in-process ``AttemptLifecycle``."""

    def __init__(self, lifecycle=None):
        self.lifecycle = lifecycle or AttemptLifecycle()

    async def record_answer(self, attempt_id, question_id, text):
        return await sync_to_async(self.lifecycle.record_answer)(attempt_id, question_id, text)

    async def submit(self, attempt_id, time_spent):
        return await sync_to_async(self.lifecycle.submit)(attempt_id, time_spent)


class SubmissionOutcome(NamedTuple):
    score: float
    forced: bool  # True when the countdown ran out


class AttemptSession:
    def __init__(self, gateway, attempt_id, started_at, time_limit_seconds,
                 clock=timezone.now, autosave_delay=None, timer_interval=None,
                 on_save_status=None, on_tick=None):
        self.gateway = gateway
        self.attempt_id = attempt_id
        self.autosave = AutosaveCoordinator(gateway, attempt_id, delay=autosave_delay, on_status=on_save_status)
        self.timer = SessionTimer(
            started_at,
            time_limit_seconds,
            on_expire=self._time_up,
            clock=clock,
            interval=timer_interval,
            on_tick=on_tick,
        )
        self.outcome = None
        self.error = None
        self._submitting = False
        self._submit_lock = asyncio.Lock()

    @classmethod
    def for_attempt(cls, gateway, attempt, **kwargs):
        return cls(gateway, attempt.pk, attempt.started_at, attempt.test.time_limit_seconds, **kwargs)

    @property
    def submitted(self):
        return self.outcome is not None

    def start(self):
        return self.timer.start()

    def answer(self, question_id, text):
        if self.submitted or self._submitting:
            raise AttemptLockedError("Cannot modify answers for a completed test.")
        self.autosave.edit(question_id, text)

    async def submit(self, forced=False):
        """Flush buffered answers and submit. Later calls return the first outcome."""
        async with self._submit_lock:
            if self.outcome is not None:
                return self.outcome

            # Answers are frozen from here; a failed submit unfreezes them.
            self._submitting = True
            try:
                await self.autosave.flush_before_submit()
                time_spent = self.timer.time_limit_seconds if forced else self.timer.elapsed()
                result = await self.gateway.submit(self.attempt_id, time_spent)
            finally:
                self._submitting = False

            self.outcome = SubmissionOutcome(result.score, forced)
            self.error = None
            self.autosave.cancel()
            self.timer.cancel()
            logger.info("Attempt %s %s submitted with score %.2f",
                        self.attempt_id, "auto" if forced else "manually", result.score)
            return self.outcome

    async def close(self):
        """Tear down when the student leaves; buffered edits are not sent."""
        self.timer.cancel()
        self.autosave.cancel()

    async def _time_up(self):
        try:
            await self.submit(forced=True)
        except Exception as exc:
            # Runs inside the timer task with no caller to report to.
            self.error = exc
            logger.error("Automatic submission of attempt %s failed: %s", self.attempt_id, exc)
