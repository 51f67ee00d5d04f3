from rest_framework import serializers
from django.contrib.auth.models import User
from django.utils import timezone
from drf_spectacular.utils import extend_schema_field

from quizzes.models import Quiz, Question, AnswerOption, QuestionBlank, QuizAttempt, StudentAnswer
from quizzes.services import TimerController, ordered_options, ordered_questions
from quizzes.services.summary import scores_visible


class UserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source='profile.role', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'role']
        read_only_fields = fields


# =============================================================================
# QUIZZES & QUESTIONS
# =============================================================================

class AnswerOptionSerializer(serializers.ModelSerializer):
    """Options as a student sees them: correctness is never exposed while taking a quiz."""

    class Meta:
        model = AnswerOption
        fields = ['id', 'text', 'order', 'blank_id']


class QuestionBlankSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuestionBlank
        fields = ['blank_id', 'label']


class QuestionSerializer(serializers.ModelSerializer):
    options = serializers.SerializerMethodField()
    blanks = QuestionBlankSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'question_type', 'text', 'points', 'order', 'is_required', 'settings', 'options', 'blanks']

    @extend_schema_field(AnswerOptionSerializer(many=True))
    def get_options(self, obj):
        attempt = self.context.get('attempt')
        options = ordered_options(attempt, obj) if attempt is not None else obj.options.all()
        return AnswerOptionSerializer(options, many=True).data


class QuizListSerializer(serializers.ModelSerializer):
    question_count = serializers.IntegerField(source='questions.count', read_only=True)
    is_available = serializers.SerializerMethodField()

    class Meta:
        model = Quiz
        fields = [
            'id', 'title', 'description', 'total_points', 'time_limit_minutes', 'max_attempts',
            'passing_score', 'is_published', 'available_from', 'available_until',
            'question_count', 'is_available', 'created_at'
        ]

    def get_is_available(self, obj) -> bool:
        return obj.is_available()


class QuizDetailSerializer(serializers.ModelSerializer):
    created_by = UserSerializer(read_only=True)
    question_count = serializers.IntegerField(source='questions.count', read_only=True)

    class Meta:
        model = Quiz
        fields = [
            'id', 'title', 'description', 'instructions', 'total_points', 'time_limit_minutes',
            'max_attempts', 'passing_score', 'auto_grade', 'shuffle_questions', 'shuffle_answers',
            'show_results_immediately', 'show_correct_answers', 'show_feedback', 'allow_review',
            'is_published', 'available_from', 'available_until', 'question_count',
            'created_by', 'created_at', 'updated_at'
        ]


# =============================================================================
# ANSWERS
# =============================================================================

class StudentAnswerSerializer(serializers.ModelSerializer):
    question_type = serializers.CharField(source='question.question_type', read_only=True)
    max_points = serializers.DecimalField(source='question.points', max_digits=6, decimal_places=2, read_only=True)
    is_pending = serializers.BooleanField(read_only=True)

    class Meta:
        model = StudentAnswer
        fields = [
            'id', 'question', 'question_type', 'answer_data',
            'points_earned', 'max_points', 'is_correct', 'is_pending', 'grader_feedback',
            'grading_method', 'graded_at', 'first_answered_at', 'answered_at', 'time_spent_seconds'
        ]
        read_only_fields = fields


class AnswerSaveSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    answer_data = serializers.JSONField()

    def validate_answer_data(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("answer_data must be an object.")
        return value


class AttemptSubmitSerializer(serializers.Serializer):
    answers = AnswerSaveSerializer(many=True, required=False, default=list)
    submitted_at = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text="Client-reported submission time; bounded by the server clock and the deadline"
    )

    def validate_answers(self, answers):
        seen = set()
        for answer in answers:
            qid = answer['question_id']
            if qid in seen:
                raise serializers.ValidationError(f"Duplicate answer for question {qid}.")
            seen.add(qid)
        return answers


class UngradedAnswerSerializer(serializers.ModelSerializer):
    attempt_id = serializers.IntegerField(source='attempt.id', read_only=True)
    student_username = serializers.CharField(source='attempt.student.username', read_only=True)
    question_text = serializers.CharField(source='question.text', read_only=True)
    question_type = serializers.CharField(source='question.question_type', read_only=True)
    max_points = serializers.DecimalField(source='question.points', max_digits=6, decimal_places=2, read_only=True)

    class Meta:
        model = StudentAnswer
        fields = [
            'id', 'attempt_id', 'student_username', 'question', 'question_text', 'question_type',
            'max_points', 'answer_data', 'answered_at'
        ]


# Manual grading
class GradeAnswerSerializer(serializers.Serializer):
    points_earned = serializers.DecimalField(max_digits=6, decimal_places=2)
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class BulkGradeItemSerializer(GradeAnswerSerializer):
    answer_id = serializers.IntegerField()


class BulkGradeSerializer(serializers.Serializer):
    grades = BulkGradeItemSerializer(many=True)

    def validate_grades(self, grades):
        if not grades:
            raise serializers.ValidationError("Provide at least one grade.")
        ids = [g['answer_id'] for g in grades]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Each answer can only be graded once per request.")
        return grades


# =============================================================================
# ATTEMPTS
# =============================================================================

class AttemptListSerializer(serializers.ModelSerializer):
    quiz_title = serializers.CharField(source='quiz.title', read_only=True)

    class Meta:
        model = QuizAttempt
        fields = [
            'id', 'quiz', 'quiz_title', 'attempt_number', 'status',
            'earned_points', 'percentage', 'is_passed',
            'started_at', 'deadline', 'submitted_at', 'graded_at'
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        if not scores_visible(instance, request.user if request else None):
            data['earned_points'] = None
            data['percentage'] = None
            data['is_passed'] = None
        return data


class AttemptDetailSerializer(serializers.ModelSerializer):
    quiz = QuizListSerializer(read_only=True)
    student = UserSerializer(read_only=True)
    answers = StudentAnswerSerializer(many=True, read_only=True)
    time_remaining = serializers.SerializerMethodField()
    pending_grading_count = serializers.SerializerMethodField()

    class Meta:
        model = QuizAttempt
        fields = [
            'id', 'quiz', 'student', 'attempt_number', 'status',
            'started_at', 'deadline', 'submitted_at', 'auto_graded_at', 'graded_at', 'time_spent_seconds',
            'earned_points', 'percentage', 'is_passed', 'pending_grading_count',
            'answers', 'time_remaining'
        ]

    @extend_schema_field(serializers.IntegerField(allow_null=True))
    def get_time_remaining(self, obj) -> int | None:
        return TimerController.time_remaining_seconds(obj, timezone.now())

    def get_pending_grading_count(self, obj) -> int:
        return sum(1 for answer in obj.answers.all() if answer.is_pending)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        if not scores_visible(instance, request.user if request else None):
            data['earned_points'] = None
            data['percentage'] = None
            data['is_passed'] = None
            for answer in data.get('answers', []):
                answer['is_correct'] = None
                answer['grader_feedback'] = None
                answer['points_earned'] = None
        return data


class AttemptQuestionsSerializer(serializers.Serializer):
    """The question paper for one attempt, in that attempt's presentation order."""
    attempt_id = serializers.IntegerField(source='id')
    deadline = serializers.DateTimeField(allow_null=True)
    questions = serializers.SerializerMethodField()

    @extend_schema_field(QuestionSerializer(many=True))
    def get_questions(self, obj):
        return QuestionSerializer(ordered_questions(obj), many=True, context={'attempt': obj}).data
