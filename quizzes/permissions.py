from rest_framework import permissions

from quizzes.exceptions import AttemptNotActive


class IsOwnerOrAdmin(permissions.BasePermission):
    def has_object_permission(self, request, view, obj):
        if is_platform_admin(request.user):
            return True
        if hasattr(obj, 'student'):
            return obj.student == request.user or obj.quiz.is_owned_by(request.user)
        return False


class IsQuizGrader(permissions.BasePermission):
    """The quiz's creator or an admin. Works on quizzes, attempts and answers."""
    message = "Only the quiz owner can grade this quiz."

    def has_object_permission(self, request, view, obj):
        return can_grade(request.user, _quiz_of(obj))


class CanModifyAttempt(permissions.BasePermission):
    message = "You cannot modify this attempt."

    def has_object_permission(self, request, view, obj):
        if obj.student != request.user:
            return False
        if not obj.is_in_progress:
            raise AttemptNotActive()
        return True


def is_platform_admin(user):
    return user.is_staff or _is_admin(user)


def can_grade(user, quiz):
    if not user.is_authenticated:
        return False
    return is_platform_admin(user) or quiz.is_owned_by(user)


def _quiz_of(obj):
    if hasattr(obj, 'attempt'):
        return obj.attempt.quiz
    if hasattr(obj, 'quiz'):
        return obj.quiz
    return obj


def _is_admin(user):
    return hasattr(user, 'profile') and user.profile.is_admin
