from .quiz import Quiz
from .question import Question, AnswerOption, CorrectAnswer, QuestionBlank
from .attempt import QuizAttempt
from .answer import StudentAnswer
from .audit import AuditLog
from .user_profile import UserProfile

__all__ = [
    'Quiz', 'Question', 'AnswerOption', 'CorrectAnswer', 'QuestionBlank',
    'QuizAttempt', 'StudentAnswer',
    'AuditLog', 'UserProfile'
]
