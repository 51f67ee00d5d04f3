"""
Grading Workflow.

Owns every write to an answer's grading fields: the auto-grading pass that
runs at submission, explicit re-grades, and the teacher's manual grades.
answer_data is never touched here.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from quizzes import grading
from quizzes.exceptions import AttemptNotSubmitted, InvalidScore
from quizzes.grading import GradingResult, QuestionConfigurationError
from .aggregator import ScoreAggregator

logger = logging.getLogger(__name__)


class GradingWorkflow:

    # =========================================================================
    # AUTO GRADING
    # =========================================================================

    @classmethod
    def auto_grade(cls, attempt, now=None, keep_manual=False):
        """
        Grade every answered, auto-gradable question on the attempt. A
        misconfigured question is logged and scored zero; it never stops the
        rest of the pass. Returns the number of answers graded.
        """
        from quizzes.models import StudentAnswer

        if not attempt.quiz.auto_grade:
            logger.info(f"Quiz {attempt.quiz_id} has auto-grading disabled; attempt {attempt.pk} waits for a teacher")
            return 0

        now = now or timezone.now()
        answers = attempt.answers.select_related('question').prefetch_related(
            'question__options', 'question__correct_answers', 'question__blanks'
        )

        graded = 0
        for answer in answers:
            if keep_manual and answer.grading_method == StudentAnswer.GradingMethod.MANUAL:
                continue

            definition = answer.question.to_definition()
            if not grading.is_auto_gradable(definition):
                continue

            try:
                result = grading.grade(definition, answer.answer_data)
            except QuestionConfigurationError as e:
                logger.warning(
                    f"Question {e.question_id} is misconfigured ({e}); "
                    f"answer {answer.pk} on attempt {attempt.pk} scored 0"
                )
                result = GradingResult.configuration_error(definition.points)

            if not result.is_gradable_now:
                continue

            answer.points_earned = result.points_earned
            answer.is_correct = result.is_correct
            answer.grading_method = result.grading_method
            answer.graded_by = None
            answer.graded_at = now
            answer.save(update_fields=[
                'points_earned', 'is_correct', 'grading_method', 'graded_by', 'graded_at', 'updated_at'
            ])
            graded += 1

        return graded

    @classmethod
    def regrade_attempt(cls, attempt_id, now=None):
        """
        Re-run the scoring engine over a submitted attempt, replacing earlier
        automatic results. Manual grades are kept.
        """
        from quizzes.models import QuizAttempt

        now = now or timezone.now()
        with transaction.atomic():
            attempt = QuizAttempt.objects.select_for_update().select_related('quiz').get(pk=attempt_id)
            if attempt.is_in_progress:
                raise AttemptNotSubmitted()

            count = cls.auto_grade(attempt, now=now, keep_manual=True)
            if attempt.quiz.auto_grade:
                attempt.auto_graded_at = now
                attempt.save(update_fields=['auto_graded_at'])
            ScoreAggregator.recompute(attempt, now=now)

        logger.info(f"Re-graded {count} answer(s) on attempt {attempt_id}")
        return attempt

    # =========================================================================
    # MANUAL GRADING
    # =========================================================================

    @classmethod
    def grade_answer(cls, answer_id, points_earned, feedback=None, grader=None, now=None):
        """
        Record a teacher's score for one answer, replacing any earlier grade,
        then recompute the owning attempt.
        """
        from quizzes.models import QuizAttempt, StudentAnswer

        now = now or timezone.now()
        points = cls._parse_points(points_earned)

        with transaction.atomic():
            attempt_id = StudentAnswer.objects.values_list('attempt_id', flat=True).get(pk=answer_id)
            attempt = QuizAttempt.objects.select_for_update().select_related('quiz').get(pk=attempt_id)
            answer = StudentAnswer.objects.select_for_update().select_related('question').get(pk=answer_id)

            if attempt.is_in_progress:
                raise AttemptNotSubmitted("Answers can only be graded after the attempt is submitted.")

            max_points = answer.question.points
            if points < 0 or points > max_points:
                raise InvalidScore(f"Points earned must be between 0 and {max_points}.")

            old_points = answer.points_earned
            answer.points_earned = points
            answer.is_correct = points == max_points
            answer.grader_feedback = feedback
            answer.grading_method = StudentAnswer.GradingMethod.MANUAL
            answer.graded_by = grader
            answer.graded_at = now
            answer.save(update_fields=[
                'points_earned', 'is_correct', 'grader_feedback', 'grading_method',
                'graded_by', 'graded_at', 'updated_at'
            ])

            snapshot = ScoreAggregator.recompute(attempt, now=now)

        logger.info(
            f"Answer {answer_id} graded {old_points} -> {points} by {getattr(grader, 'username', 'system')}; "
            f"attempt {attempt_id} pending={snapshot.pending_grading_count}"
        )
        answer.attempt = attempt
        return answer

    @classmethod
    def grade_many(cls, grades, grader=None, now=None):
        """Grade a batch of answers atomically: one invalid grade rejects the whole batch."""
        with transaction.atomic():
            return [
                cls.grade_answer(
                    item['answer_id'],
                    item['points_earned'],
                    feedback=item.get('feedback'),
                    grader=grader,
                    now=now,
                )
                for item in grades
            ]

    @staticmethod
    def list_ungraded(quiz):
        """
        Answers on finished attempts of the quiz that are still waiting for a
        score. GRADED attempts can still hold ungraded optional answers.
        """
        from quizzes.models import QuizAttempt, StudentAnswer

        return StudentAnswer.objects.filter(
            attempt__quiz=quiz,
            attempt__status__in=[QuizAttempt.Status.SUBMITTED, QuizAttempt.Status.GRADED],
            points_earned__isnull=True,
        ).select_related(
            'attempt', 'attempt__student', 'question'
        ).order_by('answered_at', 'id')

    @staticmethod
    def _parse_points(value):
        if isinstance(value, bool):
            raise InvalidScore()
        try:
            points = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidScore()
        if not points.is_finite():
            raise InvalidScore()
        return points
