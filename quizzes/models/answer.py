from django.db import models
from django.contrib.auth.models import User


class StudentAnswer(models.Model):
    class GradingMethod(models.TextChoices):
        AUTO = 'auto', 'Auto'
        MANUAL = 'manual', 'Manual'
        CONFIGURATION_ERROR = 'configuration_error', 'Configuration Error'

    attempt = models.ForeignKey(
        'QuizAttempt',
        on_delete=models.CASCADE,
        related_name='answers',
        db_index=True
    )
    question = models.ForeignKey(
        'Question',
        on_delete=models.CASCADE,
        related_name='student_answers',
        db_index=True
    )

    answer_data = models.JSONField(default=dict)

    # Null means pending grading.
    points_earned = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    is_correct = models.BooleanField(null=True)
    grader_feedback = models.TextField(null=True, blank=True)
    grading_method = models.CharField(max_length=30, choices=GradingMethod.choices, blank=True)
    graded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='graded_answers'
    )
    graded_at = models.DateTimeField(null=True, blank=True)

    first_answered_at = models.DateTimeField()
    answered_at = models.DateTimeField()
    time_spent_seconds = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['question__order', 'question_id']
        indexes = [
            models.Index(fields=['attempt', 'question'], name='answer_attempt_question_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['attempt', 'question'],
                name='unique_attempt_question'
            )
        ]

    def __str__(self):
        return f"Answer to Q{self.question.order} by {self.attempt.student.username}"

    @property
    def is_pending(self):
        return self.points_earned is None
