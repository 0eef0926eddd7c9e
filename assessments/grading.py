"""Grading rules for submitted answers.

Each rule maps a question and the raw submitted text to ``(is_correct, points)``.
No partial credit: a correct answer earns the question's full points, anything
else earns 0. Manual adjustments go through the regrade path instead.
"""
from typing import NamedTuple

from testbank.models import Question, TruthValue


class Grade(NamedTuple):
    is_correct: bool
    points: int


def grade_multiple_choice(question, submitted):
    # Case-sensitive
    return submitted.strip() == question.correct_answer.strip()


def grade_true_false(question, submitted):
    expected = question.truth_value
    chosen = TruthValue.from_submission(submitted)
    return expected is not None and chosen is expected


def grade_short_answer(question, submitted):
    return submitted.strip().lower() == question.correct_answer.strip().lower()


RULES = {
    Question.Kind.MULTIPLE_CHOICE: grade_multiple_choice,
    Question.Kind.TRUE_FALSE: grade_true_false,
    Question.Kind.SHORT_ANSWER: grade_short_answer,
}


def grade(question, submitted) -> Grade:
    """Grade ``submitted`` against ``question``'s canonical answer.

    Unknown question kinds are graded as incorrect.
    """
    rule = RULES.get(question.kind)
    is_correct = bool(rule and rule(question, submitted or ""))
    return Grade(is_correct, question.points if is_correct else 0)


def percentage(earned, possible) -> float:
    """Aggregate score as a percentage; 0 when there is nothing to earn."""
    if possible <= 0:
        return 0.0
    return 100.0 * earned / possible


def clamp_points(points, question) -> float:
    """Bound a manually entered score to ``[0, question.points]``."""
    return max(0.0, min(float(points), float(question.points)))
