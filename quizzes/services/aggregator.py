"""
Score Aggregator.

Recomputes an attempt's totals after submission and after every grading
event. Ungraded answers count as zero until graded, and any score exposed
while answers are pending is provisional.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from django.utils import timezone

from quizzes.exceptions import AttemptNotSubmitted
from quizzes.grading.base import quantize_points

logger = logging.getLogger(__name__)

PERCENTAGE_QUANTUM = Decimal('0.1')


@dataclass(frozen=True)
class ScoreSnapshot:
    earned_points: Decimal
    total_points: Decimal
    percentage: Decimal
    is_passed: Optional[bool]
    graded_count: int
    pending_grading_count: int
    required_pending_count: int = 0

    @property
    def is_provisional(self) -> bool:
        return self.pending_grading_count > 0

    @property
    def is_complete(self) -> bool:
        """Answers to optional questions may stay ungraded without blocking GRADED."""
        return self.required_pending_count == 0

    def as_dict(self):
        return {
            'earned_points': float(self.earned_points),
            'total_points': float(self.total_points),
            'percentage': float(self.percentage),
            'is_passed': self.is_passed,
            'graded_count': self.graded_count,
            'pending_grading_count': self.pending_grading_count,
            'is_provisional': self.is_provisional,
        }


class ScoreAggregator:

    @staticmethod
    def percentage(earned_points, total_points) -> Decimal:
        total = Decimal(str(total_points or 0))
        if total <= 0:
            return Decimal('0.0')
        value = (Decimal(str(earned_points)) / total * 100).quantize(PERCENTAGE_QUANTUM, rounding=ROUND_HALF_UP)
        return min(max(value, Decimal('0.0')), Decimal('100.0'))

    @classmethod
    def compute(cls, quiz, points: Iterable[Optional[Decimal]],
                required: Optional[Iterable[bool]] = None) -> ScoreSnapshot:
        """
        Pure aggregation over the points_earned values of an attempt's answers.
        `required` runs parallel to `points`; when omitted every answer is required.
        """
        points = list(points)
        required = list(required) if required is not None else [True] * len(points)

        earned = Decimal('0')
        graded = 0
        pending = 0
        required_pending = 0
        for value, is_required in zip(points, required):
            if value is None:
                pending += 1
                if is_required:
                    required_pending += 1
                continue
            graded += 1
            earned += Decimal(str(value))

        earned = quantize_points(earned)
        percentage = cls.percentage(earned, quiz.total_points)
        is_passed = None
        if quiz.passing_score is not None:
            is_passed = percentage >= Decimal(str(quiz.passing_score))

        return ScoreSnapshot(
            earned_points=earned,
            total_points=quantize_points(Decimal(str(quiz.total_points or 0))),
            percentage=percentage,
            is_passed=is_passed,
            graded_count=graded,
            pending_grading_count=pending,
            required_pending_count=required_pending,
        )

    @classmethod
    def snapshot(cls, attempt) -> ScoreSnapshot:
        rows = list(attempt.answers.values_list('points_earned', 'question__is_required'))
        return cls.compute(attempt.quiz, [p for p, _ in rows], [r for _, r in rows])

    @classmethod
    def recompute(cls, attempt, now=None) -> ScoreSnapshot:
        """
        Write the aggregate onto the attempt and move SUBMITTED to GRADED once
        no required answer is pending. Callers hold the attempt's row lock so the answers
        read here are a consistent set.
        """
        from quizzes.models import QuizAttempt

        if attempt.is_in_progress:
            raise AttemptNotSubmitted()

        result = cls.snapshot(attempt)
        attempt.earned_points = result.earned_points
        attempt.percentage = result.percentage
        attempt.is_passed = result.is_passed
        update_fields = ['earned_points', 'percentage', 'is_passed']

        if result.is_complete and attempt.status == QuizAttempt.Status.SUBMITTED:
            attempt.transition_to(QuizAttempt.Status.GRADED)
            attempt.graded_at = now or timezone.now()
            update_fields += ['status', 'graded_at']
            logger.info(f"Attempt {attempt.pk} fully graded: {result.earned_points} pts ({result.percentage}%)")

        attempt.save(update_fields=update_fields)
        return result
