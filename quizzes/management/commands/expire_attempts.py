"""
Force-submit every in-progress attempt whose deadline has passed.
Run it from cron (or any scheduler) every minute or so.
"""
from django.core.management.base import BaseCommand

from quizzes.models import AuditLog, QuizAttempt
from quizzes.services import TimerController


class Command(BaseCommand):
    help = 'Submit in-progress attempts that are past their deadline'

    def add_arguments(self, parser):
        parser.add_argument('--max-retries', type=int, default=None, help='Tries per attempt before giving up')
        parser.add_argument('--retry-delay', type=float, default=None, help='Base delay between tries, in seconds')

    def handle(self, *args, **options):
        submitted = TimerController.sweep_expired(
            max_retries=options['max_retries'],
            retry_delay=options['retry_delay'],
        )

        for attempt in QuizAttempt.objects.filter(id__in=submitted).select_related('quiz', 'student'):
            AuditLog.log(
                event_type=AuditLog.EventType.ATTEMPT_EXPIRED,
                description=f"Time limit reached: {attempt.quiz.title} (Attempt {attempt.attempt_number})",
                user=attempt.student,
                metadata={'attempt_id': attempt.id, 'deadline': attempt.deadline.isoformat(), 'source': 'sweep'}
            )

        if submitted:
            self.stdout.write(self.style.SUCCESS(f'✓ Submitted {len(submitted)} expired attempt(s)'))
        else:
            self.stdout.write('  No expired attempts')
