"""
Tests for the grading workflow: auto-grading at submission, manual grading
and re-grading.
"""
from decimal import Decimal

from django.test import TestCase

from quizzes.exceptions import AttemptNotSubmitted, InvalidScore
from quizzes.models import AnswerOption, QuizAttempt, StudentAnswer
from quizzes.services import AnswerStore, AttemptManager, GradingWorkflow

from .factories import (
    add_essay, add_fill_blank_text, add_short_answer, add_single_choice, at, make_quiz, make_user,
)


class ProvisionalScoreTests(TestCase):
    """A quiz mixing an auto-graded and a manually graded question."""

    def setUp(self):
        self.teacher = make_user('teacher')
        self.student = make_user('student')
        self.quiz = make_quiz(self.teacher, total_points=Decimal('20.00'), passing_score=Decimal('60'))
        self.choice, self.options = add_single_choice(self.quiz, points='10.00', order=1)
        self.essay = add_essay(self.quiz, points='10.00', order=2)

        self.attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        AnswerStore.save_answer(self.attempt.id, self.choice.id, {'selected_option_id': self.options['A'].id}, now=at(1))
        AnswerStore.save_answer(self.attempt.id, self.essay.id, {'answer_text': 'Photosynthesis...'}, now=at(2))
        self.attempt = AttemptManager.force_submit(self.attempt.id, now=at(3))
        self.essay_answer = StudentAnswer.objects.get(attempt=self.attempt, question=self.essay)

    def test_score_is_provisional_until_graded(self):
        """Pending answers count as zero and keep the attempt SUBMITTED."""
        self.assertEqual(self.attempt.status, QuizAttempt.Status.SUBMITTED)
        self.assertEqual(self.attempt.earned_points, Decimal('10.00'))
        self.assertEqual(self.attempt.percentage, Decimal('50.0'))
        self.assertFalse(self.attempt.is_passed)
        self.assertTrue(self.essay_answer.is_pending)

    def test_manual_grade_completes_attempt(self):
        """Grading the last pending answer moves the attempt to GRADED."""
        answer = GradingWorkflow.grade_answer(
            self.essay_answer.id, Decimal('7'), feedback='Good', grader=self.teacher, now=at(10)
        )

        attempt = QuizAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(answer.points_earned, Decimal('7'))
        self.assertFalse(answer.is_correct)
        self.assertEqual(answer.grading_method, StudentAnswer.GradingMethod.MANUAL)
        self.assertEqual(answer.graded_by, self.teacher)
        self.assertEqual(attempt.status, QuizAttempt.Status.GRADED)
        self.assertEqual(attempt.earned_points, Decimal('17.00'))
        self.assertEqual(attempt.percentage, Decimal('85.0'))
        self.assertTrue(attempt.is_passed)
        self.assertEqual(attempt.graded_at, at(10))

    def test_full_points_marks_correct(self):
        """Awarding the maximum marks the answer correct."""
        answer = GradingWorkflow.grade_answer(self.essay_answer.id, '10', grader=self.teacher, now=at(10))
        self.assertTrue(answer.is_correct)

    def test_regrading_replaces_previous_score(self):
        """A second manual grade overwrites the first."""
        GradingWorkflow.grade_answer(self.essay_answer.id, 7, grader=self.teacher, now=at(10))
        GradingWorkflow.grade_answer(self.essay_answer.id, 4, grader=self.teacher, now=at(11))

        attempt = QuizAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(attempt.earned_points, Decimal('14.00'))
        self.assertEqual(attempt.status, QuizAttempt.Status.GRADED)

    def test_score_bounds(self):
        """Negative or above-maximum scores are rejected."""
        for value in (-1, Decimal('10.01'), 'abc', float('nan'), True):
            with self.assertRaises(InvalidScore):
                GradingWorkflow.grade_answer(self.essay_answer.id, value, grader=self.teacher)
        self.assertTrue(StudentAnswer.objects.get(pk=self.essay_answer.id).is_pending)

    def test_boundaries_accepted(self):
        """Zero and the question's points are both valid."""
        GradingWorkflow.grade_answer(self.essay_answer.id, 0, grader=self.teacher, now=at(10))
        GradingWorkflow.grade_answer(self.essay_answer.id, '10.00', grader=self.teacher, now=at(11))
        self.assertEqual(StudentAnswer.objects.get(pk=self.essay_answer.id).points_earned, Decimal('10.00'))

    def test_auto_graded_answer_can_be_overridden(self):
        """Teachers may override an automatic score."""
        choice_answer = StudentAnswer.objects.get(attempt=self.attempt, question=self.choice)
        GradingWorkflow.grade_answer(choice_answer.id, 5, grader=self.teacher, now=at(10))
        self.assertEqual(QuizAttempt.objects.get(pk=self.attempt.id).earned_points, Decimal('5.00'))

    def test_list_ungraded(self):
        """Only pending answers on submitted attempts are listed."""
        ungraded = list(GradingWorkflow.list_ungraded(self.quiz))
        self.assertEqual([a.id for a in ungraded], [self.essay_answer.id])

        GradingWorkflow.grade_answer(self.essay_answer.id, 5, grader=self.teacher, now=at(10))
        self.assertFalse(GradingWorkflow.list_ungraded(self.quiz).exists())

    def test_grade_many_is_atomic(self):
        """One invalid grade rolls back the whole batch."""
        choice_answer = StudentAnswer.objects.get(attempt=self.attempt, question=self.choice)
        with self.assertRaises(InvalidScore):
            GradingWorkflow.grade_many([
                {'answer_id': self.essay_answer.id, 'points_earned': 6},
                {'answer_id': choice_answer.id, 'points_earned': 50},
            ], grader=self.teacher)

        self.assertTrue(StudentAnswer.objects.get(pk=self.essay_answer.id).is_pending)
        self.assertEqual(QuizAttempt.objects.get(pk=self.attempt.id).status, QuizAttempt.Status.SUBMITTED)

    def test_grade_many(self):
        """A valid batch grades every answer."""
        answers = GradingWorkflow.grade_many(
            [{'answer_id': self.essay_answer.id, 'points_earned': 6, 'feedback': 'ok'}],
            grader=self.teacher, now=at(10)
        )
        self.assertEqual(len(answers), 1)
        self.assertEqual(answers[0].grader_feedback, 'ok')
        self.assertEqual(answers[0].attempt.status, QuizAttempt.Status.GRADED)


class OptionalQuestionTests(TestCase):
    """Ungraded answers to optional questions stay pending without holding back GRADED."""

    def setUp(self):
        self.teacher = make_user('teacher')
        self.student = make_user('student')
        self.quiz = make_quiz(self.teacher, total_points=Decimal('20.00'))
        self.choice, self.options = add_single_choice(self.quiz, points='10.00', order=1)
        self.essay = add_essay(self.quiz, points='10.00', order=2)
        self.essay.is_required = False
        self.essay.save()

        attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        AnswerStore.save_answer(attempt.id, self.choice.id, {'selected_option_id': self.options['A'].id}, now=at(1))
        AnswerStore.save_answer(attempt.id, self.essay.id, {'answer_text': 'Optional thoughts'}, now=at(2))
        self.attempt = AttemptManager.force_submit(attempt.id, now=at(3))

    def test_optional_pending_answer_does_not_block_graded(self):
        self.assertEqual(self.attempt.status, QuizAttempt.Status.GRADED)
        self.assertEqual(self.attempt.graded_at, at(3))
        self.assertEqual(self.attempt.earned_points, Decimal('10.00'))
        self.assertTrue(StudentAnswer.objects.get(attempt=self.attempt, question=self.essay).is_pending)

    def test_optional_answer_still_listed_and_gradable(self):
        """The optional answer can still be graded and then counts toward the score."""
        answer = StudentAnswer.objects.get(attempt=self.attempt, question=self.essay)
        self.assertEqual([a.id for a in GradingWorkflow.list_ungraded(self.quiz)], [answer.id])

        GradingWorkflow.grade_answer(answer.id, 6, grader=self.teacher, now=at(10))

        attempt = QuizAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(attempt.status, QuizAttempt.Status.GRADED)
        self.assertEqual(attempt.earned_points, Decimal('16.00'))
        self.assertEqual(attempt.percentage, Decimal('80.0'))

    def test_required_pending_answer_blocks_graded(self):
        """Making the essay required keeps a fresh attempt SUBMITTED."""
        self.essay.is_required = True
        self.essay.save()
        self.quiz.max_attempts = None
        self.quiz.save()

        attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(20))
        AnswerStore.save_answer(attempt.id, self.essay.id, {'answer_text': 'Now required'}, now=at(21))
        attempt = AttemptManager.force_submit(attempt.id, now=at(22))
        self.assertEqual(attempt.status, QuizAttempt.Status.SUBMITTED)


class GradingPreconditionTests(TestCase):

    def setUp(self):
        self.student = make_user('student')
        self.quiz = make_quiz(make_user('teacher'))
        self.essay = add_essay(self.quiz)
        self.attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        self.answer = AnswerStore.save_answer(self.attempt.id, self.essay.id, {'answer_text': 'x'}, now=at(1))

    def test_cannot_grade_in_progress_attempt(self):
        """Manual grading waits for submission."""
        with self.assertRaises(AttemptNotSubmitted):
            GradingWorkflow.grade_answer(self.answer.id, 3)

    def test_cannot_regrade_in_progress_attempt(self):
        """Re-grading waits for submission."""
        with self.assertRaises(AttemptNotSubmitted):
            GradingWorkflow.regrade_attempt(self.attempt.id)


class AutoGradingTests(TestCase):

    def setUp(self):
        self.teacher = make_user('teacher')
        self.student = make_user('student')

    def submit(self, quiz, answers, minutes=5):
        attempt, _ = AttemptManager.start_attempt(quiz, self.student, now=at(0))
        for question, data in answers:
            AnswerStore.save_answer(attempt.id, question.id, data, now=at(1))
        return AttemptManager.force_submit(attempt.id, now=at(minutes))

    def test_every_auto_gradable_type(self):
        """Choice, short answer and fill-blank answers are scored at submission."""
        quiz = make_quiz(self.teacher, total_points=Decimal('20.00'))
        choice, options = add_single_choice(quiz, points='5.00', order=1)
        short = add_short_answer(quiz, points='5.00', order=2)
        blanks = add_fill_blank_text(quiz, points='10.00', order=3)

        attempt = self.submit(quiz, [
            (choice, {'selected_option_id': options['B'].id}),
            (short, {'answer_text': ' au '}),
            (blanks, {'blanks': [{'blank_id': 1, 'answer': 'Paris'}, {'blank_id': 2, 'answer': 'Rome'}]}),
        ])

        self.assertEqual(attempt.status, QuizAttempt.Status.GRADED)
        self.assertEqual(attempt.earned_points, Decimal('10.00'))
        self.assertEqual(attempt.percentage, Decimal('50.0'))
        graded = {a.question_id: a for a in attempt.answers.all()}
        self.assertEqual(graded[choice.id].points_earned, Decimal('0.00'))
        self.assertEqual(graded[short.id].points_earned, Decimal('5.00'))
        self.assertEqual(graded[blanks.id].points_earned, Decimal('5.00'))
        self.assertEqual(graded[short.id].grading_method, StudentAnswer.GradingMethod.AUTO)

    def test_auto_grade_disabled(self):
        """With auto_grade off every answer waits for a teacher."""
        quiz = make_quiz(self.teacher, auto_grade=False)
        choice, options = add_single_choice(quiz)

        attempt = self.submit(quiz, [(choice, {'selected_option_id': options['A'].id})])

        self.assertEqual(attempt.status, QuizAttempt.Status.SUBMITTED)
        self.assertIsNone(attempt.auto_graded_at)
        self.assertTrue(attempt.answers.get().is_pending)
        self.assertEqual(attempt.earned_points, Decimal('0.00'))

    def test_misconfigured_question_does_not_block_others(self):
        """A question with no correct option scores zero; the rest still grade."""
        quiz = make_quiz(self.teacher)
        broken, broken_options = add_single_choice(quiz, correct=(), order=1)
        good, good_options = add_single_choice(quiz, order=2)

        with self.assertLogs('quizzes.services.grading_workflow', level='WARNING'):
            attempt = self.submit(quiz, [
                (broken, {'selected_option_id': broken_options['A'].id}),
                (good, {'selected_option_id': good_options['A'].id}),
            ])

        graded = {a.question_id: a for a in attempt.answers.all()}
        self.assertEqual(graded[broken.id].points_earned, Decimal('0.00'))
        self.assertEqual(graded[broken.id].grading_method, StudentAnswer.GradingMethod.CONFIGURATION_ERROR)
        self.assertEqual(graded[good.id].points_earned, Decimal('5.00'))
        self.assertEqual(attempt.status, QuizAttempt.Status.GRADED)


class RegradeTests(TestCase):
    """Grades are fixed at grading time until an explicit re-grade."""

    def setUp(self):
        self.teacher = make_user('teacher')
        self.student = make_user('student')
        self.quiz = make_quiz(self.teacher)
        self.choice, self.options = add_single_choice(self.quiz, order=1)
        self.essay = add_essay(self.quiz, order=2)

        attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        AnswerStore.save_answer(attempt.id, self.choice.id, {'selected_option_id': self.options['B'].id}, now=at(1))
        AnswerStore.save_answer(attempt.id, self.essay.id, {'answer_text': 'x'}, now=at(1))
        self.attempt = AttemptManager.force_submit(attempt.id, now=at(2))
        self.essay_answer = StudentAnswer.objects.get(attempt=self.attempt, question=self.essay)
        GradingWorkflow.grade_answer(self.essay_answer.id, 4, grader=self.teacher, now=at(3))

        # B becomes the correct option.
        AnswerOption.objects.filter(pk=self.options['A'].pk).update(is_correct=False)
        AnswerOption.objects.filter(pk=self.options['B'].pk).update(is_correct=True)

    def test_answer_key_change_alone_changes_nothing(self):
        """Editing the answer key does not touch stored grades."""
        attempt = QuizAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(attempt.earned_points, Decimal('4.00'))

    def test_regrade_applies_new_key_and_keeps_manual_grades(self):
        """A re-grade rescores auto-graded answers and leaves manual grades alone."""
        attempt = GradingWorkflow.regrade_attempt(self.attempt.id, now=at(20))

        self.assertEqual(attempt.earned_points, Decimal('9.00'))
        self.assertEqual(attempt.auto_graded_at, at(20))
        self.assertEqual(StudentAnswer.objects.get(pk=self.essay_answer.id).points_earned, Decimal('4.00'))
        choice_answer = StudentAnswer.objects.get(attempt=self.attempt, question=self.choice)
        self.assertTrue(choice_answer.is_correct)
