"""
Tests for the attempt read models: summary, review and history.
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from quizzes.exceptions import AttemptNotSubmitted, ReviewNotAllowed
from quizzes.models import StudentAnswer, UserProfile
from quizzes.services import (
    AnswerStore, AttemptManager, GradingWorkflow, attempt_history, build_review, get_attempt_summary,
    ordered_options, ordered_questions,
)
from quizzes.services.summary import format_duration, scores_visible

from .factories import (
    add_essay, add_file_upload, add_short_answer, add_single_choice, at, make_quiz, make_user,
)


class FormatDurationTests(SimpleTestCase):

    def test_formats(self):
        self.assertEqual(format_duration(0), '0s')
        self.assertEqual(format_duration(45), '45s')
        self.assertEqual(format_duration(600), '10m 0s')
        self.assertEqual(format_duration(3723), '1h 2m 3s')
        self.assertEqual(format_duration(None), '0s')


class AttemptSummaryTests(TestCase):

    def setUp(self):
        self.teacher = make_user('teacher')
        self.student = make_user('student')
        self.quiz = make_quiz(
            self.teacher, total_points=Decimal('20.00'), passing_score=Decimal('50'), time_limit_minutes=30
        )
        self.choice, self.options = add_single_choice(self.quiz, order=1)
        self.short = add_short_answer(self.quiz, order=2)
        self.essay = add_essay(self.quiz, order=3)
        self.upload = add_file_upload(self.quiz, order=4)

        self.attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        AnswerStore.save_answer(self.attempt.id, self.choice.id, {'selected_option_id': self.options['A'].id}, now=at(1))
        AnswerStore.save_answer(self.attempt.id, self.choice.id, {'selected_option_id': self.options['A'].id}, now=at(2))
        AnswerStore.save_answer(self.attempt.id, self.short.id, {'answer_text': 'Ag'}, now=at(3))
        AnswerStore.save_answer(self.attempt.id, self.essay.id, {'answer_text': 'Essay'}, now=at(4))

    def test_in_progress_summary(self):
        """While in progress nothing is graded and time runs from the start."""
        summary = get_attempt_summary(self.attempt, now=at(5))

        self.assertEqual(summary['status'], 'IN_PROGRESS')
        self.assertEqual(summary['time_remaining_seconds'], 25 * 60)
        self.assertEqual(summary['time_breakdown']['total_seconds'], 300)
        self.assertTrue(summary['grading_status']['is_provisional'])
        self.assertEqual(summary['score_breakdown']['unanswered_count'], 1)
        self.assertEqual(summary['score_breakdown']['ungraded_count'], 3)

    def test_submitted_summary(self):
        """After submission the breakdowns reflect auto-grading and pending answers."""
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(10))
        summary = get_attempt_summary(attempt, now=at(11))

        self.assertIsNone(summary['time_remaining_seconds'])
        self.assertEqual(summary['time_breakdown'], {
            'total_seconds': 600,
            'total_minutes': 10.0,
            'average_per_question': 150.0,
            'formatted_duration': '10m 0s',
        })

        score = summary['score_breakdown']
        self.assertEqual(score['earned_points'], 5.0)
        self.assertEqual(score['percentage'], 25.0)
        self.assertEqual(score['correct_count'], 1)
        self.assertEqual(score['incorrect_count'], 1)
        self.assertEqual(score['ungraded_count'], 1)
        self.assertEqual(score['unanswered_count'], 1)
        self.assertFalse(score['is_passed'])

        self.assertEqual(summary['grading_status'], {
            'is_fully_graded': False,
            'pending_grading_count': 1,
            'is_provisional': True,
        })

        by_question = {q['question_id']: q for q in summary['question_breakdown']}
        self.assertEqual(by_question[self.choice.id]['time_spent_seconds'], 60)
        self.assertEqual(by_question[self.choice.id]['grading_method'], 'auto')
        self.assertTrue(by_question[self.essay.id]['is_pending'])
        self.assertFalse(by_question[self.upload.id]['is_answered'])
        self.assertIsNone(by_question[self.upload.id]['points_earned'])

    def test_graded_summary(self):
        """Once every answer is graded the summary is final."""
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(10))
        essay_answer = StudentAnswer.objects.get(attempt=attempt, question=self.essay)
        GradingWorkflow.grade_answer(essay_answer.id, 5, grader=self.teacher, now=at(20))
        attempt.refresh_from_db()

        summary = get_attempt_summary(attempt, now=at(21))

        self.assertEqual(summary['status'], 'GRADED')
        self.assertEqual(summary['score_breakdown']['earned_points'], 10.0)
        self.assertTrue(summary['score_breakdown']['is_passed'])
        self.assertEqual(summary['grading_status']['pending_grading_count'], 0)
        self.assertTrue(summary['grading_status']['is_fully_graded'])
        self.assertFalse(summary['grading_status']['is_provisional'])


class SummaryDisclosureTests(TestCase):

    def setUp(self):
        self.teacher = make_user('teacher', role=UserProfile.Role.TEACHER)
        self.student = make_user('student')
        self.quiz = make_quiz(self.teacher, show_results_immediately=False)
        self.choice, self.options = add_single_choice(self.quiz, order=1)
        self.essay = add_essay(self.quiz, order=2)

        attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        AnswerStore.save_answer(attempt.id, self.choice.id, {'selected_option_id': self.options['A'].id}, now=at(1))
        AnswerStore.save_answer(attempt.id, self.essay.id, {'answer_text': 'x'}, now=at(1))
        self.attempt = AttemptManager.force_submit(attempt.id, now=at(5))

    def test_student_sees_no_scores_before_grading(self):
        summary = get_attempt_summary(self.attempt, now=at(6), user=self.student)

        self.assertIsNone(summary['score_breakdown']['earned_points'])
        self.assertIsNone(summary['score_breakdown']['percentage'])
        self.assertIsNone(summary['score_breakdown']['incorrect_count'])
        self.assertEqual(summary['score_breakdown']['ungraded_count'], 1)
        self.assertTrue(all(q['points_earned'] is None for q in summary['question_breakdown']))
        self.assertTrue(all(q['is_correct'] is None for q in summary['question_breakdown']))

    def test_grader_sees_scores(self):
        summary = get_attempt_summary(self.attempt, now=at(6), user=self.teacher)
        self.assertEqual(summary['score_breakdown']['earned_points'], 5.0)
        self.assertEqual(summary['score_breakdown']['correct_count'], 1)


class ReviewTests(TestCase):

    def setUp(self):
        self.teacher = make_user('teacher', role=UserProfile.Role.TEACHER)
        self.student = make_user('student')
        self.quiz = make_quiz(self.teacher, show_results_immediately=False, show_correct_answers=False)
        self.choice, self.options = add_single_choice(self.quiz, order=1)
        self.essay = add_essay(self.quiz, order=2)

        self.attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))
        AnswerStore.save_answer(self.attempt.id, self.choice.id, {'selected_option_id': self.options['A'].id}, now=at(1))
        AnswerStore.save_answer(self.attempt.id, self.essay.id, {'answer_text': 'x'}, now=at(1))

    def test_review_waits_for_submission(self):
        """In-progress attempts cannot be reviewed."""
        with self.assertRaises(AttemptNotSubmitted):
            build_review(self.attempt, self.student)

    def test_review_disabled(self):
        """Students cannot review when the quiz disallows it; the owner still can."""
        self.quiz.allow_review = False
        self.quiz.save()
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(5))

        with self.assertRaises(ReviewNotAllowed):
            build_review(attempt, self.student)
        self.assertEqual(len(build_review(attempt, self.teacher)['questions']), 2)

    def test_scores_hidden_until_graded(self):
        """With results withheld the student sees answers but no scores or keys."""
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(5))
        review = build_review(attempt, self.student)

        self.assertNotIn('score', review)
        first = review['questions'][0]
        self.assertEqual(first['answer_data'], {'selected_option_id': self.options['A'].id})
        self.assertNotIn('points_earned', first)
        self.assertNotIn('correct_answers', first)
        self.assertTrue(all('is_correct' not in option for option in first['options']))
        self.assertIn('feedback', first)

    def test_scores_shown_once_graded(self):
        """A fully graded attempt shows its scores."""
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(5))
        essay_answer = StudentAnswer.objects.get(attempt=attempt, question=self.essay)
        GradingWorkflow.grade_answer(essay_answer.id, 2, feedback='Thin', grader=self.teacher, now=at(6))
        attempt.refresh_from_db()

        review = build_review(attempt, self.student)

        self.assertTrue(scores_visible(attempt, self.student))
        self.assertEqual(review['score']['earned_points'], 7.0)
        self.assertFalse(review['score']['is_provisional'])
        essay = [q for q in review['questions'] if q['question_id'] == self.essay.id][0]
        self.assertEqual(essay['points_earned'], 2.0)
        self.assertEqual(essay['feedback'], 'Thin')

    def test_owner_sees_everything(self):
        """The quiz owner sees scores and correct answers regardless of settings."""
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(5))
        review = build_review(attempt, self.teacher)

        self.assertTrue(review['score']['is_provisional'])
        first = review['questions'][0]
        self.assertIn('correct_answers', first)
        self.assertEqual(
            [o['is_correct'] for o in first['options']],
            [o.is_correct for o in self.choice.options.all()]
        )

    def test_correct_answers_disclosed_when_enabled(self):
        """show_correct_answers exposes the key to students."""
        self.quiz.show_correct_answers = True
        self.quiz.save()
        attempt = AttemptManager.force_submit(self.attempt.id, now=at(5))
        first = build_review(attempt, self.student)['questions'][0]
        self.assertIn('is_correct', first['options'][0])


class PresentationOrderTests(TestCase):

    def setUp(self):
        self.student = make_user('student')
        self.quiz = make_quiz(make_user('teacher'), shuffle_questions=True, shuffle_answers=True)
        for order in range(1, 9):
            add_single_choice(self.quiz, options=('A', 'B', 'C', 'D', 'E'), order=order)
        self.attempt, _ = AttemptManager.start_attempt(self.quiz, self.student, now=at(0))

    def test_shuffle_is_stable_per_attempt(self):
        """The same attempt always sees the same order."""
        first = [q.id for q in ordered_questions(self.attempt)]
        second = [q.id for q in ordered_questions(self.attempt)]
        self.assertEqual(first, second)
        self.assertCountEqual(first, self.quiz.questions.values_list('id', flat=True))

        question = self.quiz.questions.first()
        self.assertEqual(
            [o.id for o in ordered_options(self.attempt, question)],
            [o.id for o in ordered_options(self.attempt, question)],
        )

    def test_no_shuffle_keeps_authored_order(self):
        """Without shuffling questions follow their order field."""
        self.quiz.shuffle_questions = False
        self.quiz.save()
        orders = [q.order for q in ordered_questions(self.attempt)]
        self.assertEqual(orders, sorted(orders))


class AttemptHistoryTests(TestCase):

    def test_newest_first(self):
        """History lists a student's attempts newest first."""
        student = make_user('student')
        quiz = make_quiz(make_user('teacher'))
        for minute in (0, 10, 20):
            attempt, _ = AttemptManager.start_attempt(quiz, student, now=at(minute))
            AttemptManager.force_submit(attempt.id, now=at(minute + 1))

        self.assertEqual([a.attempt_number for a in attempt_history(quiz, student)], [3, 2, 1])
