from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User
from .models import (
    Quiz, Question, AnswerOption, CorrectAnswer, QuestionBlank, QuizAttempt, StudentAnswer, AuditLog, UserProfile
)


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False
    verbose_name_plural = 'Profile'


class UserAdmin(BaseUserAdmin):
    inlines = [UserProfileInline]
    list_display = ['username', 'email', 'first_name', 'last_name', 'get_role', 'is_staff']
    list_filter = ['is_staff', 'is_superuser', 'is_active', 'profile__role']

    def get_role(self, obj):
        return obj.profile.get_role_display() if hasattr(obj, 'profile') else '-'
    get_role.short_description = 'Role'


admin.site.unregister(User)
admin.site.register(User, UserAdmin)


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 1
    fields = ['order', 'question_type', 'text', 'points', 'is_required']
    show_change_link = True


class AnswerOptionInline(admin.TabularInline):
    model = AnswerOption
    extra = 2
    fields = ['order', 'text', 'is_correct', 'blank_id']


class CorrectAnswerInline(admin.TabularInline):
    model = CorrectAnswer
    extra = 1
    fields = ['answer_text', 'case_sensitive', 'exact_match', 'blank_id']


class QuestionBlankInline(admin.TabularInline):
    model = QuestionBlank
    extra = 0


class StudentAnswerInline(admin.TabularInline):
    model = StudentAnswer
    extra = 0
    readonly_fields = ['question', 'answer_data', 'points_earned', 'is_correct', 'grading_method', 'answered_at']
    fields = readonly_fields
    can_delete = False


@admin.register(Quiz)
class QuizAdmin(admin.ModelAdmin):
    list_display = ['title', 'is_published', 'total_points', 'time_limit_minutes', 'max_attempts', 'passing_score', 'created_at']
    list_filter = ['is_published', 'auto_grade']
    search_fields = ['title', 'description']
    inlines = [QuestionInline]
    readonly_fields = ['created_at', 'updated_at']
    fieldsets = (
        (None, {'fields': ('title', 'description', 'instructions', 'is_published')}),
        ('Scoring', {'fields': ('total_points', 'passing_score', 'auto_grade')}),
        ('Attempts', {'fields': ('time_limit_minutes', 'max_attempts', 'available_from', 'available_until')}),
        ('Presentation', {'fields': ('shuffle_questions', 'shuffle_answers')}),
        ('Results', {'fields': ('show_results_immediately', 'show_correct_answers', 'show_feedback', 'allow_review')}),
        ('Metadata', {'fields': ('created_by', 'created_at', 'updated_at'), 'classes': ('collapse',)}),
    )


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['id', 'quiz', 'question_type', 'text_preview', 'points', 'order']
    list_filter = ['question_type', 'quiz']
    search_fields = ['text']
    inlines = [AnswerOptionInline, CorrectAnswerInline, QuestionBlankInline]

    def text_preview(self, obj):
        return obj.text[:50] + '...' if len(obj.text) > 50 else obj.text
    text_preview.short_description = 'Question'


@admin.register(QuizAttempt)
class QuizAttemptAdmin(admin.ModelAdmin):
    list_display = ['id', 'student', 'quiz', 'attempt_number', 'status', 'earned_points', 'percentage', 'is_passed', 'submitted_at']
    list_filter = ['status', 'is_passed', 'quiz']
    search_fields = ['student__username', 'quiz__title']
    inlines = [StudentAnswerInline]
    readonly_fields = [
        'started_at', 'deadline', 'submitted_at', 'auto_graded_at', 'graded_at',
        'earned_points', 'percentage', 'is_passed', 'ip_address', 'user_agent'
    ]
    fieldsets = (
        (None, {'fields': ('student', 'quiz', 'status', 'attempt_number')}),
        ('Results', {'fields': ('earned_points', 'percentage', 'is_passed')}),
        ('Timing', {'fields': ('started_at', 'deadline', 'submitted_at', 'time_spent_seconds', 'auto_graded_at', 'graded_at')}),
        ('Client Info', {'fields': ('ip_address', 'user_agent'), 'classes': ('collapse',)}),
    )


@admin.register(StudentAnswer)
class StudentAnswerAdmin(admin.ModelAdmin):
    list_display = ['id', 'attempt', 'question', 'is_correct', 'points_earned', 'grading_method']
    list_filter = ['is_correct', 'grading_method']
    readonly_fields = ['answer_data', 'first_answered_at', 'answered_at', 'time_spent_seconds']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'event_type', 'user', 'ip_address', 'description_preview']
    list_filter = ['event_type', 'created_at']
    search_fields = ['user__username', 'description', 'ip_address']
    readonly_fields = ['user', 'event_type', 'description', 'ip_address', 'user_agent', 'metadata', 'created_at']
    ordering = ['-created_at']

    def description_preview(self, obj):
        return obj.description[:50] + '...' if len(obj.description) > 50 else obj.description
    description_preview.short_description = 'Description'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
