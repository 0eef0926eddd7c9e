"""Persistence for attempts and answers.

Every write that the engine relies on for correctness is a single statement:
attempt creation goes through the (test, user) unique constraint, answer saves
are ``INSERT ... ON CONFLICT DO UPDATE`` on (attempt, question), and completion
is an ``UPDATE ... WHERE completed_at IS NULL``.
"""
import functools
import logging
from datetime import timedelta

from django.db import OperationalError, models, transaction

from testbank.models import Test, Question
from .models import Attempt, Answer
from .exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def translate_db_errors(func):
    """Surface database outages as ``StoreUnavailableError``."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OperationalError as exc:
            logger.warning("Attempt store unavailable in %s: %s", func.__name__, exc)
            raise StoreUnavailableError() from exc
    return wrapper


class AttemptStore:
    """Django ORM adapter used by the lifecycle manager."""

    @translate_db_errors
    def get_test(self, test_id):
        return Test.objects.filter(pk=test_id).first()

    @translate_db_errors
    def get_attempt(self, attempt_id, for_update=False):
        queryset = Attempt.objects.select_related('test')
        if for_update:
            queryset = queryset.select_for_update(of=('self',))
        return queryset.filter(pk=attempt_id).first()

    @translate_db_errors
    def get_or_create_attempt(self, test, user_id, started_at):
        """Return ``(attempt, created)``; concurrent callers converge on one row."""
        return Attempt.objects.get_or_create(
            test=test,
            user_id=user_id,
            defaults={'started_at': started_at, 'score': 0},
        )

    @translate_db_errors
    def get_question(self, test_id, question_id):
        return Question.objects.filter(pk=question_id, test_id=test_id).first()

    @translate_db_errors
    def questions_by_id(self, test_id, question_ids):
        return Question.objects.filter(test_id=test_id, pk__in=question_ids).in_bulk()

    @translate_db_errors
    def upsert_answer(self, attempt, question, text, is_correct, score):
        Answer.objects.bulk_create(
            [Answer(attempt=attempt, question=question, text=text, is_correct=is_correct, score=score)],
            update_conflicts=True,
            unique_fields=['attempt', 'question'],
            update_fields=['text', 'is_correct', 'score', 'updated_at'],
        )

    @translate_db_errors
    def set_answer_score(self, attempt, question, score):
        """Overwrite the awarded points, creating an empty answer if none was recorded."""
        Answer.objects.update_or_create(
            attempt=attempt,
            question=question,
            defaults={'score': score},
            create_defaults={'text': "", 'is_correct': False, 'score': score},
        )

    @translate_db_errors
    def total_possible(self, test_id):
        return Question.objects.filter(test_id=test_id).aggregate(total=models.Sum('points'))['total'] or 0

    @translate_db_errors
    def earned(self, attempt_id):
        return Answer.objects.filter(attempt_id=attempt_id).aggregate(total=models.Sum('score'))['total'] or 0

    @translate_db_errors
    def complete_attempt(self, attempt_id, score, completed_at, time_spent):
        """Finalize an in-progress attempt. Returns False if it was already completed."""
        updated = Attempt.objects.filter(pk=attempt_id, completed_at__isnull=True).update(
            score=score,
            completed_at=completed_at,
            time_spent=time_spent,
        )
        return updated == 1

    @translate_db_errors
    def set_score(self, attempt_id, score):
        Attempt.objects.filter(pk=attempt_id).update(score=score)

    @translate_db_errors
    def expired_attempts(self, now, grace_seconds=0):
        """In-progress attempts whose time limit (plus grace) has run out."""
        in_progress = Attempt.objects.filter(completed_at__isnull=True)
        # One deadline per distinct time limit keeps the comparison in the database.
        limits = in_progress.values_list('test__time_limit', flat=True).distinct()
        expired = models.Q(pk__in=[])
        for minutes in limits:
            deadline = now - timedelta(minutes=minutes, seconds=grace_seconds)
            expired |= models.Q(test__time_limit=minutes, started_at__lte=deadline)
        return list(in_progress.filter(expired).select_related('test').order_by('started_at'))

    def atomic(self):
        return transaction.atomic()
