from django.db import models
from django.contrib.auth.models import User


class AuditLog(models.Model):
    class EventType(models.TextChoices):
        ATTEMPT_START = 'attempt_start', 'Attempt Started'
        ATTEMPT_RESUME = 'attempt_resume', 'Attempt Resumed'
        ATTEMPT_SUBMIT = 'attempt_submit', 'Attempt Submitted'
        ATTEMPT_EXPIRED = 'attempt_expired', 'Attempt Expired'
        ANSWER_GRADED = 'answer_graded', 'Answer Graded'
        ATTEMPT_REGRADED = 'attempt_regraded', 'Attempt Re-graded'
        PERMISSION_DENIED = 'permission_denied', 'Permission Denied'

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    event_type = models.CharField(max_length=30, choices=EventType.choices, db_index=True)
    description = models.TextField()
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'event_type'], name='audit_user_event_idx'),
            models.Index(fields=['created_at', 'event_type'], name='audit_created_event_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.user} - {self.created_at}"

    @classmethod
    def log(cls, event_type, description, request=None, user=None, metadata=None):
        ip_address = None
        user_agent = ''

        if request:
            x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
            ip_address = x_forwarded_for.split(',')[0].strip() if x_forwarded_for else request.META.get('REMOTE_ADDR')
            user_agent = request.META.get('HTTP_USER_AGENT', '')[:500]

            if not user and hasattr(request, 'user') and request.user.is_authenticated:
                user = request.user

        return cls.objects.create(
            user=user,
            event_type=event_type,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata=metadata or {}
        )
