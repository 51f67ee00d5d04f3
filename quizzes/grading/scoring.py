"""
Scoring engine: one pure grading function per question type.

Each function takes an immutable QuestionDefinition and the stored answer
data and returns a GradingResult. Question types that need human judgement
return a deferred result (points_earned is None) and wait for manual grading.
"""
import logging
from decimal import Decimal

from . import answer_data as shapes
from .base import (
    GradingResult, QuestionConfigurationError, QuestionDefinition, QuestionType, quantize_points,
)
from .text_match import matches_any

logger = logging.getLogger(__name__)


OBJECTIVE_TYPES = frozenset({
    QuestionType.SINGLE_CHOICE,
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.FILL_BLANK_TEXT,
    QuestionType.FILL_BLANK_DROPDOWN,
})


def is_auto_gradable(question: QuestionDefinition) -> bool:
    if question.question_type in OBJECTIVE_TYPES:
        return True
    if question.question_type == QuestionType.SHORT_ANSWER:
        return bool(question.correct_answers)
    return False


def grade_single_choice(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    correct = [o.id for o in question.options if o.is_correct]
    if len(correct) != 1:
        raise QuestionConfigurationError(
            question.id, f"Single choice question needs exactly one correct option, found {len(correct)}"
        )

    if shapes.selected_option_id(answer_data) == correct[0]:
        return GradingResult.full(question.points)
    return GradingResult.zero(question.points)


def grade_multiple_choice(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    correct = {o.id for o in question.options if o.is_correct}
    if not correct:
        raise QuestionConfigurationError(question.id, "Multiple choice question has no correct option")

    # All-or-nothing: any missing or extra selection scores zero.
    if shapes.selected_option_ids(answer_data) == correct:
        return GradingResult.full(question.points)
    return GradingResult.zero(question.points)


def grade_short_answer(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    if not question.correct_answers:
        return GradingResult.deferred(question.points)

    if matches_any(shapes.answer_text(answer_data), question.correct_answers):
        return GradingResult.full(question.points)
    return GradingResult.zero(question.points)


def grade_manually(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    return GradingResult.deferred(question.points)


def grade_fill_blank_text(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    values = shapes.blank_values(answer_data, shapes.BLANK_VALUE_KEYS[QuestionType.FILL_BLANK_TEXT])

    def blank_is_correct(blank):
        correct_answers = question.correct_answers_for_blank(blank.blank_id)
        if not correct_answers:
            raise QuestionConfigurationError(
                question.id, f"Blank {blank.blank_id} has no correct answer", blank_id=blank.blank_id
            )
        submitted = values.get(blank.blank_id)
        if not isinstance(submitted, str):
            return False
        return matches_any(submitted, correct_answers)

    return _grade_blanks(question, blank_is_correct)


def grade_fill_blank_dropdown(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    values = shapes.blank_values(answer_data, shapes.BLANK_VALUE_KEYS[QuestionType.FILL_BLANK_DROPDOWN])

    def blank_is_correct(blank):
        correct = [o.id for o in question.options_for_blank(blank.blank_id) if o.is_correct]
        if len(correct) != 1:
            raise QuestionConfigurationError(
                question.id,
                f"Blank {blank.blank_id} needs exactly one correct option, found {len(correct)}",
                blank_id=blank.blank_id,
            )
        return shapes.as_option_id(values.get(blank.blank_id)) == correct[0]

    return _grade_blanks(question, blank_is_correct)


def _grade_blanks(question: QuestionDefinition, blank_is_correct) -> GradingResult:
    if question.blank_count == 0:
        raise QuestionConfigurationError(question.id, "Fill-in-the-blank question has no blanks")

    matched = 0
    for blank in question.blanks:
        try:
            if blank_is_correct(blank):
                matched += 1
        except QuestionConfigurationError as e:
            # A misconfigured blank is worth nothing; the other blanks still count.
            logger.warning(f"Question {question.id}: {e}; blank skipped")

    points = quantize_points(question.points * Decimal(matched) / Decimal(question.blank_count))
    return GradingResult(
        points_earned=points,
        max_points=question.points,
        is_correct=matched == question.blank_count,
        is_gradable_now=True,
    )


GRADERS = {
    QuestionType.SINGLE_CHOICE: grade_single_choice,
    QuestionType.MULTIPLE_CHOICE: grade_multiple_choice,
    QuestionType.SHORT_ANSWER: grade_short_answer,
    QuestionType.ESSAY: grade_manually,
    QuestionType.FILE_UPLOAD: grade_manually,
    QuestionType.FILL_BLANK_TEXT: grade_fill_blank_text,
    QuestionType.FILL_BLANK_DROPDOWN: grade_fill_blank_dropdown,
}


def grade(question: QuestionDefinition, answer_data: dict) -> GradingResult:
    """
    Grade one answer. Raises QuestionConfigurationError when the question
    itself cannot be graded; callers decide how to isolate that.
    """
    grader = GRADERS.get(question.question_type)
    if grader is None:
        logger.warning(f"Question {question.id}: no grader for type {question.question_type}")
        return GradingResult.deferred(question.points)
    return grader(question, answer_data or {})
