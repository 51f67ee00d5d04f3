from rest_framework.throttling import UserRateThrottle


class SubmissionRateThrottle(UserRateThrottle):
    """Strict rate limit for attempt submissions to prevent abuse."""
    scope = 'submission'
    rate = '10/minute'


class AutosaveRateThrottle(UserRateThrottle):
    """Autosave fires on every answer change; allow bursts but cap runaway clients."""
    scope = 'autosave'
    rate = '120/minute'


class BurstRateThrottle(UserRateThrottle):
    """General burst protection for authenticated users."""
    scope = 'burst'
    rate = '60/minute'
