"""
Quiz engine errors.

Lifecycle and grading errors are DRF APIExceptions, so a view that lets one
propagate answers with the matching status code and a stable error code.
"""
from rest_framework import status
from rest_framework.exceptions import APIException

from quizzes.grading.base import QuestionConfigurationError


class QuizEngineError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The quiz engine rejected this request."
    default_code = 'quiz_engine_error'


class QuizNotAvailable(QuizEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "This quiz is not available."
    default_code = 'quiz_not_available'


class AttemptLimitReached(QuizEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Maximum attempts reached."
    default_code = 'attempt_limit_reached'


class AttemptNotActive(QuizEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This attempt has already been submitted."
    default_code = 'attempt_not_active'


class AttemptExpired(QuizEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The time limit for this attempt has expired. Your answers have been submitted."
    default_code = 'attempt_expired'


class AttemptNotSubmitted(QuizEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This attempt is still in progress."
    default_code = 'attempt_not_submitted'


class ReviewNotAllowed(QuizEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Review is not allowed for this quiz."
    default_code = 'review_not_allowed'


class InvalidScore(QuizEngineError):
    default_detail = "Points earned must be between 0 and the question's points."
    default_code = 'invalid_score'


class InvalidAnswerData(QuizEngineError):
    default_detail = "Invalid answer data."
    default_code = 'invalid_answer_data'


class QuestionNotInQuiz(QuizEngineError):
    default_detail = "Question does not belong to this quiz."
    default_code = 'question_not_in_quiz'


__all__ = [
    'QuizEngineError', 'QuizNotAvailable', 'AttemptLimitReached', 'AttemptNotActive', 'AttemptExpired',
    'AttemptNotSubmitted', 'ReviewNotAllowed', 'InvalidScore', 'InvalidAnswerData', 'QuestionNotInQuiz',
    'QuestionConfigurationError',
]
