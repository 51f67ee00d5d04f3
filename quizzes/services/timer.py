"""
Timer Controller.

The server owns every deadline. A deadline is fixed when the attempt is
created (started_at + time_limit_minutes) and an attempt counts as expired
from the deadline instant onwards. Client countdowns are advisory.
"""
import logging
import time
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

logger = logging.getLogger(__name__)


class TimerController:

    @staticmethod
    def compute_deadline(started_at, time_limit_minutes):
        if not time_limit_minutes:
            return None
        return started_at + timedelta(minutes=time_limit_minutes)

    @staticmethod
    def is_expired(attempt, now=None) -> bool:
        return attempt.is_expired(now)

    @staticmethod
    def time_remaining_seconds(attempt, now=None):
        if attempt.deadline is None or not attempt.is_in_progress:
            return None
        remaining = attempt.deadline - (now or timezone.now())
        return max(0, int(remaining.total_seconds()))

    @classmethod
    def enforce_deadline(cls, attempt, now=None):
        """Force-submit an in-progress attempt whose deadline has passed. Returns the current attempt."""
        if not attempt.is_in_progress or not cls.is_expired(attempt, now):
            return attempt
        logger.info(f"Attempt {attempt.pk} reached its deadline {attempt.deadline}; forcing submission")
        return cls.expire_attempt(attempt.pk, now=now)

    @classmethod
    def expire_attempt(cls, attempt_id, now=None, max_retries=None, retry_delay=None):
        """
        Force-submit an expired attempt, retrying on database errors until the
        submission commits or the retry budget is spent.
        """
        from .attempts import AttemptManager

        config = getattr(settings, 'QUIZ_ENGINE', {})
        max_retries = max_retries if max_retries is not None else config.get('EXPIRY_SWEEP_MAX_RETRIES', 5)
        retry_delay = retry_delay if retry_delay is not None else config.get('EXPIRY_SWEEP_RETRY_DELAY', 0.5)

        for attempt_no in range(1, max_retries + 1):
            try:
                return AttemptManager.force_submit(attempt_id, now=now, triggered_by='timer')
            except DatabaseError as e:
                if attempt_no == max_retries:
                    logger.error(f"Forced submission of attempt {attempt_id} failed after {attempt_no} tries: {e}")
                    raise
                logger.warning(f"Forced submission of attempt {attempt_id} failed (try {attempt_no}): {e}")
                time.sleep(retry_delay * attempt_no)

    @classmethod
    def sweep_expired(cls, now=None, max_retries=None, retry_delay=None):
        """Force-submit every in-progress attempt past its deadline. Returns the submitted attempt ids."""
        from quizzes.models import QuizAttempt

        now = now or timezone.now()
        expired_ids = list(
            QuizAttempt.objects.filter(
                status=QuizAttempt.Status.IN_PROGRESS,
                deadline__isnull=False,
                deadline__lte=now
            ).values_list('id', flat=True)
        )

        submitted = []
        for attempt_id in expired_ids:
            try:
                cls.expire_attempt(attempt_id, now=now, max_retries=max_retries, retry_delay=retry_delay)
            except DatabaseError:
                # Left IN_PROGRESS; the next sweep picks it up again.
                continue
            submitted.append(attempt_id)

        if submitted:
            logger.info(f"Expired {len(submitted)} attempt(s): {submitted}")
        return submitted
