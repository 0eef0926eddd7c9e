from django.test import SimpleTestCase, TestCase

from assessments.grading import clamp_points, grade, percentage
from testbank.models import Question, TruthValue

from .factories import make_test, make_user


def question(kind, answer, points=10):
    return Question(kind=kind, correct_answer=answer, points=points)


class MultipleChoiceGradingTests(SimpleTestCase):
    def test_exact_match_earns_full_points(self):
        result = grade(question(Question.Kind.MULTIPLE_CHOICE, "Newton"), "Newton")
        self.assertTrue(result.is_correct)
        self.assertEqual(result.points, 10)

    def test_comparison_is_case_sensitive(self):
        result = grade(question(Question.Kind.MULTIPLE_CHOICE, "Newton"), "newton")
        self.assertFalse(result.is_correct)
        self.assertEqual(result.points, 0)

    def test_surrounding_whitespace_is_ignored(self):
        self.assertTrue(grade(question(Question.Kind.MULTIPLE_CHOICE, " Newton"), "Newton  ").is_correct)


class TrueFalseGradingTests(SimpleTestCase):
    def test_false_answer_key(self):
        self.assertTrue(grade(question(Question.Kind.TRUE_FALSE, "False"), "1").is_correct)
        self.assertFalse(grade(question(Question.Kind.TRUE_FALSE, "False"), "0").is_correct)

    def test_true_answer_key(self):
        self.assertTrue(grade(question(Question.Kind.TRUE_FALSE, "True"), "0").is_correct)
        self.assertFalse(grade(question(Question.Kind.TRUE_FALSE, "True"), "1").is_correct)

    def test_digit_answer_keys(self):
        self.assertTrue(grade(question(Question.Kind.TRUE_FALSE, "1"), "1").is_correct)
        self.assertTrue(grade(question(Question.Kind.TRUE_FALSE, "0"), "0").is_correct)

    def test_other_submissions_are_incorrect(self):
        for submitted in ["True", "False", "", "2", "yes"]:
            with self.subTest(submitted=submitted):
                result = grade(question(Question.Kind.TRUE_FALSE, "True", points=5), submitted)
                self.assertFalse(result.is_correct)
                self.assertEqual(result.points, 0)

    def test_unparseable_answer_key_never_matches(self):
        self.assertFalse(grade(question(Question.Kind.TRUE_FALSE, "maybe"), "0").is_correct)
        self.assertFalse(grade(question(Question.Kind.TRUE_FALSE, "maybe"), "1").is_correct)


class ShortAnswerGradingTests(SimpleTestCase):
    def test_trimmed_case_insensitive_match(self):
        result = grade(question(Question.Kind.SHORT_ANSWER, "0.5 kg", points=5), " 0.5 KG ")
        self.assertEqual(result, (True, 5))

    def test_no_partial_credit(self):
        self.assertEqual(grade(question(Question.Kind.SHORT_ANSWER, "0.5 kg"), "0.5"), (False, 0))

    def test_empty_submission(self):
        self.assertFalse(grade(question(Question.Kind.SHORT_ANSWER, "0.5 kg"), "").is_correct)
        self.assertTrue(grade(question(Question.Kind.SHORT_ANSWER, ""), "  ").is_correct)


class ScoreHelperTests(SimpleTestCase):
    def test_percentage(self):
        self.assertEqual(percentage(30, 40), 75.0)
        self.assertEqual(percentage(0, 0), 0.0)

    def test_clamp_points(self):
        q = question(Question.Kind.SHORT_ANSWER, "x", points=10)
        self.assertEqual(clamp_points(12, q), 10.0)
        self.assertEqual(clamp_points(-3, q), 0.0)
        self.assertEqual(clamp_points(7.5, q), 7.5)

    def test_truth_value_parse(self):
        self.assertIs(TruthValue.parse(" True "), TruthValue.TRUE)
        self.assertIs(TruthValue.parse("1"), TruthValue.FALSE)
        with self.assertRaises(ValueError):
            TruthValue.parse("yes")


class QuestionNormalizationTests(TestCase):
    def test_true_false_key_is_stored_as_word(self):
        test = make_test(make_user("teacher"), questions=[(Question.Kind.TRUE_FALSE, "0", 1)])
        self.assertEqual(test.questions.get().correct_answer, "True")

    def test_other_kinds_are_stored_verbatim(self):
        test = make_test(make_user("teacher"), questions=[(Question.Kind.SHORT_ANSWER, " 0 ", 1)])
        self.assertEqual(test.questions.get().correct_answer, " 0 ")
