from decimal import Decimal

from django.db import models
from django.core.validators import MinValueValidator

from quizzes.grading.base import (
    QuestionType, QuestionDefinition, OptionDefinition, CorrectAnswerDefinition, BlankDefinition,
)


class Question(models.Model):
    QuestionType = QuestionType

    quiz = models.ForeignKey(
        'Quiz',
        on_delete=models.CASCADE,
        related_name='questions',
        db_index=True
    )
    question_type = models.CharField(
        max_length=30,
        choices=QuestionType.choices,
        db_index=True
    )
    text = models.TextField()
    explanation = models.TextField(blank=True)
    points = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        default=Decimal('1.00'),
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    order = models.PositiveIntegerField(default=0)
    is_required = models.BooleanField(default=True)
    settings = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'id']
        indexes = [
            models.Index(fields=['quiz', 'order'], name='question_quiz_order_idx'),
        ]

    def __str__(self):
        return f"Q{self.order}: {self.text[:50]}..."

    def to_definition(self) -> QuestionDefinition:
        """Snapshot the question and its correctness data for grading."""
        return QuestionDefinition(
            id=self.id,
            question_type=self.question_type,
            points=Decimal(str(self.points)),
            options=tuple(
                OptionDefinition(id=o.id, is_correct=o.is_correct, blank_id=o.blank_id)
                for o in self.options.all()
            ),
            correct_answers=tuple(
                CorrectAnswerDefinition(
                    answer_text=a.answer_text,
                    case_sensitive=a.case_sensitive,
                    exact_match=a.exact_match,
                    blank_id=a.blank_id,
                )
                for a in self.correct_answers.all()
            ),
            blanks=tuple(
                BlankDefinition(blank_id=b.blank_id, label=b.label)
                for b in self.blanks.all()
            ),
        )


class AnswerOption(models.Model):
    question = models.ForeignKey(
        'Question',
        on_delete=models.CASCADE,
        related_name='options'
    )
    text = models.TextField()
    is_correct = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)
    blank_id = models.PositiveIntegerField(null=True, blank=True, help_text="Dropdown blank this option belongs to")

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return self.text[:50]


class CorrectAnswer(models.Model):
    question = models.ForeignKey(
        'Question',
        on_delete=models.CASCADE,
        related_name='correct_answers'
    )
    answer_text = models.TextField()
    case_sensitive = models.BooleanField(default=False)
    exact_match = models.BooleanField(default=True)
    blank_id = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        ordering = ['blank_id', 'id']

    def __str__(self):
        return self.answer_text[:50]


class QuestionBlank(models.Model):
    question = models.ForeignKey(
        'Question',
        on_delete=models.CASCADE,
        related_name='blanks'
    )
    blank_id = models.PositiveIntegerField()
    label = models.CharField(max_length=200, blank=True)

    class Meta:
        ordering = ['blank_id']
        constraints = [
            models.UniqueConstraint(
                fields=['question', 'blank_id'],
                name='unique_question_blank'
            )
        ]

    def __str__(self):
        return f"Blank {self.blank_id} of Q{self.question_id}"
