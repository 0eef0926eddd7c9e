"""Attempt lifecycle: NotStarted -> InProgress -> Completed.

``NotStarted`` has no row. An attempt is in progress while ``completed_at`` is
null and completed once it is set; completion happens exactly once. After that
only ``revise`` may touch scores, and it never changes ``completed_at``.
"""
import logging
from typing import NamedTuple

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from cores.models import AuditLog
from .exceptions import (
    AlreadyCompletedError,
    AttemptLockedError,
    AttemptNotCompletedError,
    AttemptNotFoundError,
    QuestionNotFoundError,
    TestNotFoundError,
)
from .grading import Grade, clamp_points, grade, percentage
from .store import AttemptStore

logger = logging.getLogger(__name__)

NEW = "new"
RESUMED = "resumed"


class StartResult(NamedTuple):
    attempt: object
    status: str
    message: str

    @property
    def attempt_id(self):
        return self.attempt.pk


class SubmitResult(NamedTuple):
    attempt_id: int
    score: float


class AttemptLifecycle:
    def __init__(self, store=None, clock=timezone.now):
        self.store = store or AttemptStore()
        self.clock = clock

    def start_or_resume(self, test_id, user_id) -> StartResult:
        test = self.store.get_test(test_id)
        if test is None:
            raise TestNotFoundError()

        attempt, created = self.store.get_or_create_attempt(test, user_id, started_at=self.clock())
        if created:
            logger.info("Attempt %s started: test=%s user=%s", attempt.pk, test_id, user_id)
            return StartResult(attempt, NEW, "New attempt started")

        if attempt.is_completed:
            raise AlreadyCompletedError()
        return StartResult(attempt, RESUMED, "Resumed existing attempt")

    def record_answer(self, attempt_id, question_id, raw_text) -> Grade:
        """Grade and save one answer. Replaying the same call stores the same state."""
        with self.store.atomic():
            attempt = self._in_progress_attempt(attempt_id, "Cannot modify answers for a completed test.")

            question = self.store.get_question(attempt.test_id, question_id)
            if question is None:
                raise QuestionNotFoundError()

            result = grade(question, raw_text)
            self.store.upsert_answer(attempt, question, raw_text, result.is_correct, result.points)
        return result

    def submit(self, attempt_id, time_spent) -> SubmitResult:
        if time_spent is None or time_spent < 0:
            raise ValidationError({'time_spent': "Time spent must be a non-negative number of seconds."})

        with self.store.atomic():
            attempt = self._in_progress_attempt(attempt_id, AttemptLockedError.default_detail)

            possible = self.store.total_possible(attempt.test_id)
            earned = self.store.earned(attempt.pk)
            score = percentage(earned, possible)

            # Guarded on completed_at IS NULL; a concurrent submit makes this a no-op.
            if not self.store.complete_attempt(attempt.pk, score, self.clock(), int(time_spent)):
                raise AttemptLockedError()

        logger.info("Attempt %s submitted: %s/%s points (%.2f%%)", attempt.pk, earned, possible, score)
        return SubmitResult(attempt.pk, score)

    def revise(self, attempt_id, updates, grader=None) -> float:
        """Overwrite per-question scores of a completed attempt and recompute its total.

        ``updates`` maps question id to points; values are clamped to the
        question's point range. Returns the new percentage score.
        """
        with self.store.atomic():
            attempt = self.store.get_attempt(attempt_id, for_update=True)
            if attempt is None:
                raise AttemptNotFoundError()
            if not attempt.is_completed:
                raise AttemptNotCompletedError()

            questions = self.store.questions_by_id(attempt.test_id, list(updates))
            missing = [qid for qid in updates if qid not in questions]
            if missing:
                raise QuestionNotFoundError(f"Question {missing[0]} is not part of this test.")

            for question_id, points in updates.items():
                question = questions[question_id]
                self.store.set_answer_score(attempt, question, clamp_points(points, question))

            old_score = attempt.score
            new_score = percentage(self.store.earned(attempt.pk), self.store.total_possible(attempt.test_id))
            self.store.set_score(attempt.pk, new_score)

            AuditLog.record(
                actor=grader,
                action='GRADE',
                target=attempt,
                details=f"Regraded {len(updates)} answer(s): {old_score:.2f}% -> {new_score:.2f}%",
            )

        logger.info("Attempt %s regraded by %s: %.2f -> %.2f", attempt.pk, grader, old_score, new_score)
        return new_score

    def _in_progress_attempt(self, attempt_id, locked_message):
        attempt = self.store.get_attempt(attempt_id, for_update=True)
        if attempt is None:
            raise AttemptNotFoundError()
        if attempt.is_completed:
            raise AttemptLockedError(locked_message)
        return attempt
