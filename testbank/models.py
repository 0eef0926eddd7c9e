# classroom_platform/testbank/models.py
import enum

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class TruthValue(enum.Enum):
    """Canonical answer of a true/false question.

    The taking UI submits "0" for True and "1" for False; authored answers may
    use either the words or those digits.
    """
    TRUE = "True"
    FALSE = "False"

    @classmethod
    def parse(cls, raw):
        value = (raw or "").strip()
        if value in ("True", "0"):
            return cls.TRUE
        if value in ("False", "1"):
            return cls.FALSE
        raise ValueError(f"Not a true/false answer: {raw!r}")

    @classmethod
    def from_submission(cls, raw):
        """Strict parse of a submitted value; anything but "0"/"1" is None."""
        value = (raw or "").strip()
        if value == "0":
            return cls.TRUE
        if value == "1":
            return cls.FALSE
        return None


class Test(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        ACTIVE = "active", "Active"
        ARCHIVED = "archived", "Archived"

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='owned_tests')

    time_limit = models.PositiveIntegerField(help_text="Time limit in minutes")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    @property
    def time_limit_seconds(self):
        return self.time_limit * 60

    def total_points(self):
        return self.questions.aggregate(total=models.Sum('points'))['total'] or 0


class Question(models.Model):
    class Kind(models.TextChoices):
        MULTIPLE_CHOICE = "multiple-choice", "Multiple Choice"
        TRUE_FALSE = "true-false", "True / False"
        SHORT_ANSWER = "short-answer", "Short Answer"

    test = models.ForeignKey(Test, related_name='questions', on_delete=models.CASCADE)
    order = models.PositiveIntegerField(default=0)

    text = models.TextField()
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.MULTIPLE_CHOICE)
    # Option strings for multiple-choice / true-false, in display order
    options = models.JSONField(default=list, blank=True)
    correct_answer = models.TextField(blank=True, help_text="Canonical correct answer")
    points = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        ordering = ['order', 'id']
        constraints = [
            models.CheckConstraint(condition=models.Q(points__gte=1), name='question_points_at_least_one'),
        ]

    def __str__(self):
        return f"{self.text[:50]}..."

    def clean(self):
        if self.kind == self.Kind.TRUE_FALSE:
            try:
                TruthValue.parse(self.correct_answer)
            except ValueError:
                raise ValidationError({'correct_answer': "True/false answers must be True, False, 0 or 1."})

    def save(self, *args, **kwargs):
        # True/false answers are stored in word form only.
        if self.kind == self.Kind.TRUE_FALSE and self.truth_value is not None:
            self.correct_answer = self.truth_value.value
        super().save(*args, **kwargs)

    @property
    def truth_value(self):
        """Canonical answer of a true/false question, or None if unparseable."""
        try:
            return TruthValue.parse(self.correct_answer)
        except ValueError:
            return None
