from .timer import TimerController
from .aggregator import ScoreAggregator, ScoreSnapshot
from .grading_workflow import GradingWorkflow
from .answers import AnswerStore
from .attempts import AttemptManager
from .summary import get_attempt_summary, build_review, attempt_history, ordered_questions, ordered_options
from .analytics import QuizAnalytics

__all__ = [
    'TimerController', 'ScoreAggregator', 'ScoreSnapshot', 'GradingWorkflow', 'AnswerStore',
    'AttemptManager', 'get_attempt_summary', 'build_review', 'attempt_history', 'ordered_questions',
    'ordered_options', 'QuizAnalytics'
]
