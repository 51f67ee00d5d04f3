"""
Tests for the scoring engine: pure grading over question snapshots.
"""
from decimal import Decimal

from django.test import SimpleTestCase

from quizzes.grading import (
    BlankDefinition, CorrectAnswerDefinition, OptionDefinition, QuestionConfigurationError,
    QuestionDefinition, QuestionType, grade, is_auto_gradable, validate_answer_data,
)
from quizzes.grading.text_match import matches


def question(question_type, points='5.00', **kwargs):
    return QuestionDefinition(id=1, question_type=question_type, points=Decimal(points), **kwargs)


class ChoiceGradingTests(SimpleTestCase):
    """Single and multiple choice grading."""

    def setUp(self):
        self.single = question(
            QuestionType.SINGLE_CHOICE,
            options=(OptionDefinition(10, False), OptionDefinition(11, True), OptionDefinition(12, False)),
        )
        self.multiple = question(
            QuestionType.MULTIPLE_CHOICE,
            options=(OptionDefinition(1, True), OptionDefinition(2, True), OptionDefinition(3, False)),
        )

    def test_single_choice_correct(self):
        """The correct option earns full points."""
        result = grade(self.single, {'selected_option_id': 11})
        self.assertEqual(result.points_earned, Decimal('5.00'))
        self.assertTrue(result.is_correct)
        self.assertTrue(result.is_gradable_now)

    def test_single_choice_wrong(self):
        """Any other option earns zero."""
        result = grade(self.single, {'selected_option_id': 10})
        self.assertEqual(result.points_earned, Decimal('0.00'))
        self.assertFalse(result.is_correct)

    def test_single_choice_accepts_string_id(self):
        """Option ids arriving as strings still match."""
        result = grade(self.single, {'selected_option_id': '11'})
        self.assertTrue(result.is_correct)

    def test_single_choice_requires_exactly_one_correct_option(self):
        """Two correct options is a configuration error."""
        broken = question(
            QuestionType.SINGLE_CHOICE,
            options=(OptionDefinition(1, True), OptionDefinition(2, True)),
        )
        with self.assertRaises(QuestionConfigurationError):
            grade(broken, {'selected_option_id': 1})

    def test_multiple_choice_exact_set(self):
        """Selecting exactly the correct set earns full points."""
        result = grade(self.multiple, {'selected_option_ids': [2, 1]})
        self.assertEqual(result.points_earned, Decimal('5.00'))
        self.assertTrue(result.is_correct)

    def test_multiple_choice_missing_option_scores_zero(self):
        """A subset of the correct options earns nothing."""
        result = grade(self.multiple, {'selected_option_ids': [1]})
        self.assertEqual(result.points_earned, Decimal('0.00'))
        self.assertFalse(result.is_correct)

    def test_multiple_choice_extra_option_scores_zero(self):
        """A superset of the correct options earns nothing."""
        result = grade(self.multiple, {'selected_option_ids': [1, 2, 3]})
        self.assertEqual(result.points_earned, Decimal('0.00'))

    def test_multiple_choice_duplicates_ignored(self):
        """Repeated ids in the selection behave as a set."""
        result = grade(self.multiple, {'selected_option_ids': [1, 2, 2]})
        self.assertTrue(result.is_correct)

    def test_multiple_choice_without_correct_options(self):
        """No correct option is a configuration error."""
        broken = question(QuestionType.MULTIPLE_CHOICE, options=(OptionDefinition(1, False),))
        with self.assertRaises(QuestionConfigurationError):
            grade(broken, {'selected_option_ids': [1]})


class TextGradingTests(SimpleTestCase):
    """Short answer grading and text matching."""

    def test_case_insensitive_trimmed_match(self):
        """Case and surrounding whitespace are ignored by default."""
        q = question(QuestionType.SHORT_ANSWER, correct_answers=(CorrectAnswerDefinition('Paris'),))
        result = grade(q, {'answer_text': '  paris '})
        self.assertTrue(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('5.00'))

    def test_case_sensitive_answer(self):
        """A case-sensitive answer rejects a different case."""
        q = question(
            QuestionType.SHORT_ANSWER,
            correct_answers=(CorrectAnswerDefinition('Au', case_sensitive=True),),
        )
        self.assertFalse(grade(q, {'answer_text': 'au'}).is_correct)
        self.assertTrue(grade(q, {'answer_text': 'Au'}).is_correct)

    def test_any_configured_answer_matches(self):
        """Matching any one of several correct answers is enough."""
        q = question(
            QuestionType.SHORT_ANSWER,
            correct_answers=(CorrectAnswerDefinition('color'), CorrectAnswerDefinition('colour')),
        )
        self.assertTrue(grade(q, {'answer_text': 'Colour'}).is_correct)

    def test_partial_match_mode(self):
        """Without exact_match the correct text only has to appear in the answer."""
        correct = CorrectAnswerDefinition('mitochondria', exact_match=False)
        self.assertTrue(matches('The mitochondria produce energy', correct))
        self.assertFalse(matches('The nucleus', correct))

    def test_empty_text_never_matches(self):
        """Blank submissions and blank answer keys never match."""
        self.assertFalse(matches('   ', CorrectAnswerDefinition('x')))
        self.assertFalse(matches('anything', CorrectAnswerDefinition('', exact_match=False)))

    def test_short_answer_without_key_is_deferred(self):
        """No correct answers configured means a teacher grades it."""
        q = question(QuestionType.SHORT_ANSWER)
        result = grade(q, {'answer_text': 'something'})
        self.assertIsNone(result.points_earned)
        self.assertFalse(result.is_gradable_now)
        self.assertFalse(is_auto_gradable(q))

    def test_essay_and_file_upload_are_deferred(self):
        """Essays and uploads always wait for manual grading."""
        for question_type, data in [
            (QuestionType.ESSAY, {'answer_text': 'Long answer'}),
            (QuestionType.FILE_UPLOAD, {'file_path': 'uploads/a.pdf'}),
        ]:
            result = grade(question(question_type), data)
            self.assertIsNone(result.points_earned)
            self.assertFalse(result.is_gradable_now)
            self.assertFalse(is_auto_gradable(question(question_type)))


class FillBlankGradingTests(SimpleTestCase):
    """Fill-in-the-blank grading, text and dropdown."""

    def setUp(self):
        self.text_question = question(
            QuestionType.FILL_BLANK_TEXT,
            points='10.00',
            blanks=(BlankDefinition(1), BlankDefinition(2)),
            correct_answers=(
                CorrectAnswerDefinition('Paris', blank_id=1),
                CorrectAnswerDefinition('Berlin', blank_id=2),
            ),
        )
        self.dropdown_question = question(
            QuestionType.FILL_BLANK_DROPDOWN,
            points='4.00',
            blanks=(BlankDefinition(1), BlankDefinition(2)),
            options=(
                OptionDefinition(20, True, blank_id=1), OptionDefinition(21, False, blank_id=1),
                OptionDefinition(30, False, blank_id=2), OptionDefinition(31, True, blank_id=2),
            ),
        )

    def test_all_blanks_correct(self):
        """Every blank right earns full points."""
        result = grade(self.text_question, {'blanks': [
            {'blank_id': 1, 'answer': 'Paris'}, {'blank_id': 2, 'answer': 'Berlin'},
        ]})
        self.assertEqual(result.points_earned, Decimal('10.00'))
        self.assertTrue(result.is_correct)

    def test_partial_credit_per_blank(self):
        """One of two blanks right earns half the points."""
        result = grade(self.text_question, {'blanks': [
            {'blank_id': 1, 'answer': 'Paris'}, {'blank_id': 2, 'answer': 'Madrid'},
        ]})
        self.assertEqual(result.points_earned, Decimal('5.00'))
        self.assertFalse(result.is_correct)

    def test_mapping_form_accepted(self):
        """Blanks may be sent as {blank_id: value}."""
        result = grade(self.text_question, {'blanks': {'1': 'paris', '2': 'BERLIN'}})
        self.assertEqual(result.points_earned, Decimal('10.00'))

    def test_missing_blank_scores_zero_share(self):
        """An unanswered blank contributes nothing."""
        result = grade(self.text_question, {'blanks': [{'blank_id': 2, 'answer': 'Berlin'}]})
        self.assertEqual(result.points_earned, Decimal('5.00'))

    def test_share_is_rounded_to_cents(self):
        """Thirds are rounded to two decimals."""
        q = question(
            QuestionType.FILL_BLANK_TEXT,
            points='10.00',
            blanks=(BlankDefinition(1), BlankDefinition(2), BlankDefinition(3)),
            correct_answers=tuple(CorrectAnswerDefinition(t, blank_id=i) for i, t in enumerate('xyz', 1)),
        )
        result = grade(q, {'blanks': {'1': 'x'}})
        self.assertEqual(result.points_earned, Decimal('3.33'))

    def test_blank_without_answer_key_is_skipped(self):
        """A misconfigured blank scores zero while the others still count."""
        q = question(
            QuestionType.FILL_BLANK_TEXT,
            points='10.00',
            blanks=(BlankDefinition(1), BlankDefinition(2)),
            correct_answers=(CorrectAnswerDefinition('Paris', blank_id=1),),
        )
        with self.assertLogs('quizzes.grading.scoring', level='WARNING'):
            result = grade(q, {'blanks': {'1': 'Paris', '2': 'Berlin'}})
        self.assertEqual(result.points_earned, Decimal('5.00'))
        self.assertFalse(result.is_correct)

    def test_no_blanks_is_configuration_error(self):
        """A fill-blank question with no blanks cannot be graded."""
        q = question(QuestionType.FILL_BLANK_TEXT, correct_answers=(CorrectAnswerDefinition('x', blank_id=1),))
        with self.assertRaises(QuestionConfigurationError):
            grade(q, {'blanks': {'1': 'x'}})

    def test_dropdown_per_blank(self):
        """Dropdown blanks compare the chosen option per blank."""
        full = grade(self.dropdown_question, {'blanks': [
            {'blank_id': 1, 'selected_option_id': 20}, {'blank_id': 2, 'selected_option_id': 31},
        ]})
        half = grade(self.dropdown_question, {'blanks': {'1': 20, '2': 30}})
        self.assertEqual(full.points_earned, Decimal('4.00'))
        self.assertTrue(full.is_correct)
        self.assertEqual(half.points_earned, Decimal('2.00'))
        self.assertFalse(half.is_correct)


class AnswerDataValidationTests(SimpleTestCase):
    """Answer data must carry the key its question type reads."""

    def test_valid_shapes(self):
        """Each question type accepts its own shape."""
        cases = [
            (QuestionType.SINGLE_CHOICE, {'selected_option_id': 1}),
            (QuestionType.MULTIPLE_CHOICE, {'selected_option_ids': [1, 2]}),
            (QuestionType.SHORT_ANSWER, {'answer_text': 'x'}),
            (QuestionType.ESSAY, {'answer_text': ''}),
            (QuestionType.FILE_UPLOAD, {'file_path': 'uploads/a.pdf'}),
            (QuestionType.FILL_BLANK_TEXT, {'blanks': [{'blank_id': 1, 'answer': 'x'}]}),
            (QuestionType.FILL_BLANK_DROPDOWN, {'blanks': {'1': 3}}),
        ]
        for question_type, data in cases:
            self.assertIsNone(validate_answer_data(question_type, data), question_type)

    def test_missing_key(self):
        """A single choice answer without selected_option_id is rejected."""
        self.assertIsNotNone(validate_answer_data(QuestionType.SINGLE_CHOICE, {'answer_text': 'A'}))

    def test_wrong_types(self):
        """Values of the wrong type are rejected."""
        self.assertIsNotNone(validate_answer_data(QuestionType.MULTIPLE_CHOICE, {'selected_option_ids': 3}))
        self.assertIsNotNone(validate_answer_data(QuestionType.FILL_BLANK_TEXT, {'blanks': 'Paris'}))
        self.assertIsNotNone(validate_answer_data(QuestionType.ESSAY, ['text']))
