# apps/bookingapp/conf.py
from django.conf import settings

DEFAULTS = {
    "SLOT_STEP_MINUTES": 15,
    "ALTERNATIVE_SEARCH_DAYS": 7,
    "DEFAULT_ALTERNATIVE_COUNT": 3,
    "CONFLICT_ALTERNATIVE_COUNT": 5,
    "NEARBY_SLOT_WINDOW_MINUTES": 120,
    "NEARBY_SLOT_LIMIT": 3,
    "WORKDAY_MINUTES": 480,
    "VIP_PRIME_START_HOUR": 10,
    "VIP_PRIME_END_HOUR": 14,
    "COMMIT_MAX_ATTEMPTS": 3,
    "COMMIT_RETRY_DELAY_SECONDS": 0.05,
    "STAFF_LOCK_EXPIRES_SECONDS": 30,
    "STAFF_LOCK_TIMEOUT_SECONDS": 5,
    "AUTO_RESOLUTION_MAX_ATTEMPTS": 3,
    "AUTO_RESOLUTION_MIN_CONFIDENCE": 0.7,
    "DEFAULT_TIMEZONE": "UTC",
}


def engine_config(overrides=None):
    """
    Booking engine settings: defaults, then settings.BOOKING_ENGINE, then
    explicit overrides passed by the caller
    """
    config = dict(DEFAULTS)
    config.update(getattr(settings, "BOOKING_ENGINE", {}) or {})
    if overrides:
        config.update(overrides)
    return config
