from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone


class QuizAttempt(models.Model):
    class Status(models.TextChoices):
        IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
        SUBMITTED = 'SUBMITTED', 'Submitted'
        GRADED = 'GRADED', 'Graded'

    # Forward-only lifecycle; a transition never regresses.
    TRANSITIONS = {
        Status.IN_PROGRESS: {Status.SUBMITTED},
        Status.SUBMITTED: {Status.GRADED},
        Status.GRADED: set(),
    }

    quiz = models.ForeignKey(
        'Quiz',
        on_delete=models.CASCADE,
        related_name='attempts',
        db_index=True
    )
    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='quiz_attempts',
        db_index=True
    )
    attempt_number = models.PositiveIntegerField(default=1)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.IN_PROGRESS,
        db_index=True
    )

    started_at = models.DateTimeField(default=timezone.now)
    deadline = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    auto_graded_at = models.DateTimeField(null=True, blank=True)
    graded_at = models.DateTimeField(null=True, blank=True)
    time_spent_seconds = models.PositiveIntegerField(null=True, blank=True)

    # Null until the first scoring pass.
    earned_points = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    is_passed = models.BooleanField(null=True)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)

    class Meta:
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['student', 'quiz'], name='attempt_student_quiz_idx'),
            models.Index(fields=['quiz', 'status'], name='attempt_quiz_status_idx'),
            models.Index(fields=['status', 'deadline'], name='attempt_status_deadline_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['quiz', 'student', 'attempt_number'],
                name='unique_quiz_student_attempt'
            ),
            models.UniqueConstraint(
                fields=['quiz', 'student'],
                condition=models.Q(status='IN_PROGRESS'),
                name='one_active_attempt_per_student'
            ),
        ]

    def __str__(self):
        return f"{self.student.username} - {self.quiz.title} (Attempt {self.attempt_number})"

    @property
    def is_in_progress(self):
        return self.status == self.Status.IN_PROGRESS

    def is_expired(self, now=None):
        if self.deadline is None:
            return False
        return (now or timezone.now()) >= self.deadline

    def can_transition_to(self, status):
        return status in self.TRANSITIONS.get(self.status, set())

    def transition_to(self, status):
        if not self.can_transition_to(status):
            raise ValueError(f"Attempt {self.pk} cannot move from {self.status} to {status}")
        self.status = status
