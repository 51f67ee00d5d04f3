from .base import (
    GradingResult, QuestionDefinition, OptionDefinition, CorrectAnswerDefinition, BlankDefinition,
    QuestionType, QuestionConfigurationError,
)
from .scoring import grade, is_auto_gradable
from .answer_data import validate_answer_data

__all__ = [
    'GradingResult', 'QuestionDefinition', 'OptionDefinition', 'CorrectAnswerDefinition', 'BlankDefinition',
    'QuestionType', 'QuestionConfigurationError', 'grade', 'is_auto_gradable', 'validate_answer_data',
]
