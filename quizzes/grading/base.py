from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from django.db import models


POINTS_QUANTUM = Decimal('0.01')


class QuestionType(models.TextChoices):
    SINGLE_CHOICE = 'SINGLE_CHOICE', 'Single Choice'
    MULTIPLE_CHOICE = 'MULTIPLE_CHOICE', 'Multiple Choice'
    SHORT_ANSWER = 'SHORT_ANSWER', 'Short Answer'
    ESSAY = 'ESSAY', 'Essay'
    FILE_UPLOAD = 'FILE_UPLOAD', 'File Upload'
    FILL_BLANK_TEXT = 'FILL_BLANK_TEXT', 'Fill in the Blank (Text)'
    FILL_BLANK_DROPDOWN = 'FILL_BLANK_DROPDOWN', 'Fill in the Blank (Dropdown)'


class QuestionConfigurationError(ValueError):
    """Raised when a question's correctness data cannot support grading."""

    def __init__(self, question_id, message, blank_id=None):
        self.question_id = question_id
        self.blank_id = blank_id
        super().__init__(message)


@dataclass(frozen=True)
class OptionDefinition:
    id: int
    is_correct: bool
    blank_id: Optional[int] = None


@dataclass(frozen=True)
class CorrectAnswerDefinition:
    answer_text: str
    case_sensitive: bool = False
    exact_match: bool = True
    blank_id: Optional[int] = None


@dataclass(frozen=True)
class BlankDefinition:
    blank_id: int
    label: str = ''


@dataclass(frozen=True)
class QuestionDefinition:
    """Immutable snapshot of a question, as seen by the grading functions."""
    id: int
    question_type: str
    points: Decimal
    options: Tuple[OptionDefinition, ...] = field(default_factory=tuple)
    correct_answers: Tuple[CorrectAnswerDefinition, ...] = field(default_factory=tuple)
    blanks: Tuple[BlankDefinition, ...] = field(default_factory=tuple)

    @property
    def blank_count(self) -> int:
        return len(self.blanks)

    def options_for_blank(self, blank_id: int) -> Tuple[OptionDefinition, ...]:
        return tuple(o for o in self.options if o.blank_id == blank_id)

    def correct_answers_for_blank(self, blank_id: int) -> Tuple[CorrectAnswerDefinition, ...]:
        return tuple(a for a in self.correct_answers if a.blank_id == blank_id)


@dataclass(frozen=True)
class GradingResult:
    points_earned: Optional[Decimal]
    max_points: Decimal
    is_correct: Optional[bool]
    is_gradable_now: bool
    grading_method: str = 'auto'

    @property
    def percentage(self) -> float:
        if not self.max_points or self.points_earned is None:
            return 0.0
        return float(self.points_earned / self.max_points * 100)

    @classmethod
    def full(cls, max_points: Decimal) -> 'GradingResult':
        return cls(quantize_points(max_points), max_points, True, True)

    @classmethod
    def zero(cls, max_points: Decimal) -> 'GradingResult':
        return cls(Decimal('0.00'), max_points, False, True)

    @classmethod
    def deferred(cls, max_points: Decimal) -> 'GradingResult':
        return cls(None, max_points, None, False, grading_method='')

    @classmethod
    def configuration_error(cls, max_points: Decimal) -> 'GradingResult':
        return cls(Decimal('0.00'), max_points, False, True, grading_method='configuration_error')


def quantize_points(value) -> Decimal:
    return Decimal(value).quantize(POINTS_QUANTUM, rounding=ROUND_HALF_UP)
