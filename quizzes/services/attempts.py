"""
Attempt Manager.

Starts and ends quiz attempts. Enforces the attempt limit, keeps at most one
IN_PROGRESS attempt per (quiz, student), and fixes the deadline at creation.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from quizzes.exceptions import AttemptLimitReached, QuizNotAvailable
from .aggregator import ScoreAggregator
from .answers import AnswerStore
from .grading_workflow import GradingWorkflow
from .timer import TimerController

logger = logging.getLogger(__name__)


class AttemptManager:

    @staticmethod
    def completed_attempt_count(quiz, student):
        from quizzes.models import QuizAttempt

        return QuizAttempt.objects.filter(
            quiz=quiz,
            student=student,
            status__in=[QuizAttempt.Status.SUBMITTED, QuizAttempt.Status.GRADED]
        ).count()

    @staticmethod
    def active_attempt(quiz, student):
        from quizzes.models import QuizAttempt

        return QuizAttempt.objects.filter(
            quiz=quiz,
            student=student,
            status=QuizAttempt.Status.IN_PROGRESS
        ).first()

    @classmethod
    def start_attempt(cls, quiz, student, ip_address=None, user_agent='', now=None):
        """
        Start or resume an attempt. Returns (attempt, created).

        An IN_PROGRESS attempt is returned unchanged. If that attempt is
        already past its deadline it is force-submitted first and a new
        attempt is considered.
        """
        now = now or timezone.now()

        if not quiz.is_available(now):
            raise QuizNotAvailable()

        active = cls.active_attempt(quiz, student)
        if active is not None and not TimerController.enforce_deadline(active, now).is_in_progress:
            active = None

        completed = cls.completed_attempt_count(quiz, student)
        if quiz.max_attempts is not None and completed >= quiz.max_attempts:
            raise AttemptLimitReached(f"Maximum attempts ({quiz.max_attempts}) reached.")

        if active is not None:
            logger.info(f"Resuming attempt {active.pk} for student {student.pk} on quiz {quiz.pk}")
            return active, False

        return cls._create_attempt(quiz, student, ip_address, user_agent, now)

    @classmethod
    def _create_attempt(cls, quiz, student, ip_address, user_agent, now):
        from quizzes.models import QuizAttempt

        last_number = QuizAttempt.objects.filter(
            quiz=quiz, student=student
        ).aggregate(last=Max('attempt_number'))['last'] or 0

        try:
            with transaction.atomic():
                attempt = QuizAttempt.objects.create(
                    quiz=quiz,
                    student=student,
                    attempt_number=last_number + 1,
                    status=QuizAttempt.Status.IN_PROGRESS,
                    started_at=now,
                    deadline=TimerController.compute_deadline(now, quiz.time_limit_minutes),
                    ip_address=ip_address,
                    user_agent=(user_agent or '')[:500],
                )
        except IntegrityError:
            # A concurrent start won the insert; hand back its attempt.
            active = cls.active_attempt(quiz, student)
            if active is None:
                raise
            logger.info(f"Concurrent start for student {student.pk} on quiz {quiz.pk}; returning attempt {active.pk}")
            return active, False

        logger.info(
            f"Started attempt {attempt.pk} (#{attempt.attempt_number}) for student {student.pk} "
            f"on quiz {quiz.pk}, deadline {attempt.deadline}"
        )
        return attempt, True

    @classmethod
    def force_submit(cls, attempt_id, answers=None, client_submitted_at=None, now=None, triggered_by='student'):
        """
        Submit an attempt and run the auto-grading pass.

        A no-op for attempts that are already SUBMITTED or GRADED. `answers` is
        an optional final batch of {'question_id', 'answer_data'} saved just
        before submission; it is dropped once the deadline has passed.
        """
        from quizzes.models import QuizAttempt

        now = now or timezone.now()

        with transaction.atomic():
            attempt = QuizAttempt.objects.select_for_update().select_related('quiz').get(pk=attempt_id)
            if not attempt.is_in_progress:
                logger.info(f"Attempt {attempt_id} already {attempt.status}; submission ignored")
                return attempt

            expired = TimerController.is_expired(attempt, now)
            if answers and expired:
                logger.warning(f"Dropping {len(answers)} final answer(s) on attempt {attempt_id}: deadline passed")
            elif answers:
                for item in answers:
                    question = AnswerStore.get_question(attempt, item['question_id'])
                    AnswerStore.validate(question, item['answer_data'])
                    AnswerStore.upsert(attempt, question, item['answer_data'], now)

            attempt.submitted_at = cls.submission_time(attempt, now, client_submitted_at)
            attempt.time_spent_seconds = max(0, int((attempt.submitted_at - attempt.started_at).total_seconds()))
            attempt.transition_to(QuizAttempt.Status.SUBMITTED)
            update_fields = ['status', 'submitted_at', 'time_spent_seconds']

            graded = GradingWorkflow.auto_grade(attempt, now=now)
            if attempt.quiz.auto_grade:
                attempt.auto_graded_at = now
                update_fields.append('auto_graded_at')
            attempt.save(update_fields=update_fields)

            snapshot = ScoreAggregator.recompute(attempt, now=now)

        logger.info(
            f"Attempt {attempt_id} submitted ({triggered_by}) at {attempt.submitted_at}: "
            f"{graded} auto-graded, {snapshot.pending_grading_count} pending, "
            f"{snapshot.earned_points} pts ({snapshot.percentage}%)"
        )
        return attempt

    @staticmethod
    def submission_time(attempt, now, client_submitted_at=None):
        """
        The earlier of the server clock and the client's reported time, where
        the client report is bounded by the deadline. Past the deadline the
        deadline itself is authoritative.
        """
        if attempt.deadline is not None and now >= attempt.deadline:
            return attempt.deadline

        submitted_at = now
        if client_submitted_at is not None:
            reported = max(client_submitted_at, attempt.started_at)
            if attempt.deadline is not None:
                reported = min(reported, attempt.deadline)
            submitted_at = min(now, reported)
        return submitted_at
