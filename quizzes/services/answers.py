"""
Answer Store.

Autosave target for the quiz-taking surface. One StudentAnswer row per
(attempt, question); a later save replaces answer_data in place.
"""
import logging

from django.db import transaction
from django.utils import timezone

from quizzes.exceptions import AttemptExpired, AttemptNotActive, InvalidAnswerData, QuestionNotInQuiz
from quizzes.grading import validate_answer_data
from .timer import TimerController

logger = logging.getLogger(__name__)


class AnswerStore:

    @classmethod
    def save_answer(cls, attempt_id, question_id, answer_data, now=None):
        """
        Upsert the answer for one question. Fails with AttemptNotActive once the
        attempt has left IN_PROGRESS and with AttemptExpired from the deadline
        on, in which case the attempt is force-submitted first.
        """
        from quizzes.models import QuizAttempt

        now = now or timezone.now()

        with transaction.atomic():
            attempt = QuizAttempt.objects.select_for_update().select_related('quiz').get(pk=attempt_id)
            if not attempt.is_in_progress:
                raise AttemptNotActive()

            expired = TimerController.is_expired(attempt, now)
            if not expired:
                question = cls.get_question(attempt, question_id)
                cls.validate(question, answer_data)
                return cls.upsert(attempt, question, answer_data, now)

        logger.info(f"Save on attempt {attempt_id} rejected at {now}: deadline {attempt.deadline} passed")
        TimerController.expire_attempt(attempt_id, now=now)
        raise AttemptExpired()

    @staticmethod
    def get_question(attempt, question_id):
        from quizzes.models import Question

        try:
            return Question.objects.get(pk=question_id, quiz_id=attempt.quiz_id)
        except Question.DoesNotExist:
            raise QuestionNotInQuiz(f"Question {question_id} does not belong to this quiz.")

    @staticmethod
    def validate(question, answer_data):
        error = validate_answer_data(question.question_type, answer_data)
        if error:
            raise InvalidAnswerData(error)

    @staticmethod
    def upsert(attempt, question, answer_data, now):
        """Write answer_data for (attempt, question). Caller holds the attempt lock."""
        from quizzes.models import StudentAnswer

        answer, created = StudentAnswer.objects.get_or_create(
            attempt=attempt,
            question=question,
            defaults={
                'answer_data': answer_data,
                'first_answered_at': now,
                'answered_at': now,
                'time_spent_seconds': 0,
            }
        )
        if created:
            return answer

        answer.answer_data = answer_data
        answer.answered_at = now
        answer.time_spent_seconds = max(0, int((now - answer.first_answered_at).total_seconds()))
        answer.save(update_fields=['answer_data', 'answered_at', 'time_spent_seconds', 'updated_at'])
        return answer
