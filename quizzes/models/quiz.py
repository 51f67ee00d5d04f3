from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone


class Quiz(models.Model):
    title = models.CharField(max_length=300)
    description = models.TextField(blank=True)
    instructions = models.TextField(blank=True)

    # Declared maximum; authoritative over the sum of question points.
    total_points = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[MinValueValidator(0)]
    )
    time_limit_minutes = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)]
    )
    max_attempts = models.PositiveIntegerField(null=True, blank=True, help_text="Leave blank for unlimited")
    passing_score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    auto_grade = models.BooleanField(default=True)

    # Presentation only; never part of grading identity.
    shuffle_questions = models.BooleanField(default=False)
    shuffle_answers = models.BooleanField(default=False)

    # Post-submission disclosure
    show_results_immediately = models.BooleanField(default=True)
    show_correct_answers = models.BooleanField(default=False)
    show_feedback = models.BooleanField(default=True)
    allow_review = models.BooleanField(default=True)

    # Scheduling
    is_published = models.BooleanField(default=False, db_index=True)
    available_from = models.DateTimeField(null=True, blank=True, help_text="When quiz opens")
    available_until = models.DateTimeField(null=True, blank=True, help_text="When quiz closes")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_quizzes'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'quizzes'
        indexes = [
            models.Index(fields=['is_published', 'created_at'], name='quiz_published_created_idx'),
        ]

    def __str__(self):
        return self.title

    def get_question_points(self):
        return self.questions.aggregate(total=models.Sum('points'))['total'] or 0

    def get_question_count(self):
        return self.questions.count()

    def is_available(self, now=None):
        """Check if quiz can be started based on publication and schedule."""
        now = now or timezone.now()
        if not self.is_published:
            return False
        if self.available_from and now < self.available_from:
            return False
        if self.available_until and now > self.available_until:
            return False
        return True

    def is_owned_by(self, user):
        return user.is_authenticated and self.created_by_id == user.id
