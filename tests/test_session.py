import asyncio
from datetime import timedelta

from django.test import SimpleTestCase, TestCase

from assessments.autosave import SaveStatus
from assessments.exceptions import AttemptLockedError, StoreUnavailableError
from assessments.lifecycle import AttemptLifecycle, SubmitResult
from assessments.models import Answer, Attempt
from assessments.session import AttemptSession, LocalAttemptGateway

from .factories import MOSTLY_RIGHT, FakeClock, make_test, make_user


class RecordingGateway:
    def __init__(self):
        self.events = []
        self.fail_submit = False

    async def record_answer(self, attempt_id, question_id, text):
        self.events.append(("answer", question_id, text))

    async def submit(self, attempt_id, time_spent):
        await asyncio.sleep(0)
        if self.fail_submit:
            raise StoreUnavailableError()
        self.events.append(("submit", time_spent))
        return SubmitResult(attempt_id, 80.0)

    @property
    def submits(self):
        return [event for event in self.events if event[0] == "submit"]


class AttemptSessionTests(SimpleTestCase):
    def make(self, started_ago=300, limit=1800):
        self.clock = FakeClock()
        self.gateway = RecordingGateway()
        return AttemptSession(
            self.gateway,
            attempt_id=3,
            started_at=self.clock.now - timedelta(seconds=started_ago),
            time_limit_seconds=limit,
            clock=self.clock,
            autosave_delay=60,
            timer_interval=0,
        )

    async def test_manual_submit_flushes_first(self):
        session = self.make(started_ago=300)
        session.answer(1, "Newton")
        session.answer(2, "1")

        outcome = await session.submit()

        self.assertEqual(outcome, (80.0, False))
        self.assertEqual(self.gateway.events[-1], ("submit", 300))
        self.assertCountEqual(self.gateway.events[:2], [("answer", 1, "Newton"), ("answer", 2, "1")])
        self.assertEqual(session.autosave.status, SaveStatus.SAVED)

    async def test_time_up_submits_with_full_limit(self):
        session = self.make(started_ago=1800)
        session.answer(1, "Newton")

        await session.start()

        self.assertTrue(session.outcome.forced)
        self.assertEqual(self.gateway.events, [("answer", 1, "Newton"), ("submit", 1800)])

    async def test_only_one_submission_when_timer_and_student_race(self):
        session = self.make(started_ago=1800)

        manual, _ = await asyncio.gather(session.submit(), session.start())

        self.assertEqual(len(self.gateway.submits), 1)
        self.assertEqual(manual, session.outcome)

    async def test_submit_again_returns_first_outcome(self):
        session = self.make()
        first = await session.submit()
        self.clock.advance(30)
        self.assertIs(await session.submit(), first)
        self.assertEqual(len(self.gateway.submits), 1)

    async def test_answers_rejected_after_submit(self):
        session = self.make()
        await session.submit()
        with self.assertRaises(AttemptLockedError):
            session.answer(1, "late")

    async def test_answers_frozen_while_submit_is_in_flight(self):
        session = self.make()
        session.answer(1, "Newton")
        release = asyncio.Event()
        original_submit = self.gateway.submit

        async def slow_submit(attempt_id, time_spent):
            await release.wait()
            return await original_submit(attempt_id, time_spent)

        self.gateway.submit = slow_submit
        submitting = asyncio.ensure_future(session.submit())
        await asyncio.sleep(0.01)

        with self.assertRaises(AttemptLockedError):
            session.answer(2, "late edit")
        release.set()
        await submitting

        self.assertEqual(session.autosave.status, SaveStatus.SAVED)
        self.assertEqual(session.autosave.pending, {})
        self.assertNotIn(("answer", 2, "late edit"), self.gateway.events)

    async def test_answers_accepted_again_after_failed_submit(self):
        session = self.make()
        self.gateway.fail_submit = True
        with self.assertRaises(StoreUnavailableError):
            await session.submit()

        session.answer(1, "Newton")
        self.assertEqual(session.autosave.pending, {1: "Newton"})
        await session.close()

    async def test_failed_submit_can_be_retried(self):
        session = self.make()
        session.answer(1, "Newton")
        self.gateway.fail_submit = True

        with self.assertRaises(StoreUnavailableError):
            await session.submit()
        self.assertFalse(session.submitted)

        self.gateway.fail_submit = False
        self.assertEqual((await session.submit()).score, 80.0)

    async def test_failed_auto_submit_is_recorded(self):
        session = self.make(started_ago=1800)
        self.gateway.fail_submit = True

        await session.start()

        self.assertFalse(session.submitted)
        self.assertIsInstance(session.error, StoreUnavailableError)

    async def test_close_cancels_pending_work(self):
        session = self.make()
        session.answer(1, "Newton")
        await session.close()
        await asyncio.sleep(0)
        self.assertEqual(self.gateway.events, [])


class LocalGatewayTests(TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.lifecycle = AttemptLifecycle(clock=self.clock)
        self.test = make_test(make_user("teacher"))
        self.questions = list(self.test.questions.all())
        started = self.lifecycle.start_or_resume(self.test.id, make_user("student").id)
        self.attempt = Attempt.objects.select_related('test').get(pk=started.attempt_id)

    async def test_session_against_the_database(self):
        session = AttemptSession.for_attempt(
            LocalAttemptGateway(self.lifecycle), self.attempt, clock=self.clock, autosave_delay=60,
        )
        for question, text in zip(self.questions, MOSTLY_RIGHT):
            session.answer(question.id, text)
        self.clock.advance(640)

        outcome = await session.submit()

        self.assertEqual(outcome.score, 75.0)
        attempt = await Attempt.objects.aget(pk=self.attempt.pk)
        self.assertEqual(attempt.time_spent, 640)
        self.assertEqual(await Answer.objects.filter(attempt=attempt).acount(), 5)

    async def test_autosave_surfaces_locked_attempt(self):
        await LocalAttemptGateway(self.lifecycle).submit(self.attempt.pk, 10)
        session = AttemptSession.for_attempt(
            LocalAttemptGateway(self.lifecycle), self.attempt, clock=self.clock, autosave_delay=0,
        )

        session.answer(self.questions[0].id, "Newton")
        await session.autosave.wait()

        self.assertEqual(session.autosave.status, SaveStatus.ERROR)
        self.assertIsInstance(session.autosave.last_error, AttemptLockedError)
