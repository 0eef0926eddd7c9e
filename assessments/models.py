# assessments/models.py
from django.db import models
from django.conf import settings
from django.utils import timezone
from testbank.models import Test, Question
from .timer import remaining_seconds


class Attempt(models.Model):
    """One user's single pass at one test. At most one per (test, user)."""
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name='attempts')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='attempts')
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)  # When they submitted
    time_spent = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds, set on completion")
    # Percentage 0-100
    score = models.FloatField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['test', 'user'], name='one_attempt_per_user_per_test'),
        ]

    def __str__(self):
        return f"{self.user} - {self.test.name}"

    @property
    def is_completed(self):
        return self.completed_at is not None

    @property
    def status(self):
        return "completed" if self.is_completed else "in_progress"

    def time_remaining_seconds(self, now=None):
        """Seconds left, derived from the persisted start time."""
        if self.is_completed:
            return 0
        return remaining_seconds(self.started_at, self.test.time_limit_seconds, now or timezone.now())


class Answer(models.Model):
    attempt = models.ForeignKey(Attempt, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='answers')

    text = models.TextField(blank=True)

    # Grading
    is_correct = models.BooleanField(default=False)
    score = models.FloatField(default=0)  # Points awarded, never above question.points
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['attempt', 'question'], name='one_answer_per_question'),
        ]

    def __str__(self):
        return f"{self.attempt_id}/{self.question_id}: {self.text[:30]}"
