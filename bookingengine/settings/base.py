# bookingengine/settings/base.py
"""
Booking engine: shared Django settings (development, test, production).

Environment-specific values **must** come from the environment (.env or real env
vars). Do not hard-code credentials or hostnames in this file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from decouple import config  # Use python-decouple for env vars
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Paths & dotenv
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

if "production" in os.environ.get("DJANGO_SETTINGS_MODULE", ""):
    load_dotenv(BASE_DIR / ".env.production")
else:
    load_dotenv(BASE_DIR / ".env")


# ---------------------------------------------------------------------------
# Tiny helper: read env with "required" flag
# ---------------------------------------------------------------------------
def env(key: str, default: Optional[str] = None, *, required: bool = False) -> str:
    val = os.getenv(key, default)
    if required and (val is None or val == ""):
        raise RuntimeError(f"The environment variable {key} is required but not set.")
    return val


# ---------------------------------------------------------------------------
# Core toggles
# ---------------------------------------------------------------------------
SECRET_KEY = config("SECRET_KEY", default="django-insecure-fallback-key-change-me-in-env")
DEBUG = config("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = config(
    "ALLOWED_HOSTS", default="127.0.0.1,localhost", cast=lambda v: [s.strip() for s in v.split(",")]
)

# ---------------------------------------------------------------------------
# Database: PostgreSQL everywhere except tests
# ---------------------------------------------------------------------------
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("POSTGRES_DB", "bookingengine"),
        "USER": os.environ.get("POSTGRES_USER", "bookingengine"),
        "PASSWORD": os.environ.get("POSTGRES_PASSWORD", "bookingengine"),
        "HOST": os.environ.get("POSTGRES_HOST", "db"),
        "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "CONN_MAX_AGE": 600,
        "OPTIONS": {
            "connect_timeout": 10,
            "application_name": "bookingengine",
        },
        "CONN_HEALTH_CHECKS": True,
    }
}

# SQLite fallback for local/dev testing
if os.environ.get("USE_SQLITE", "False").lower() == "true":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.path.join(BASE_DIR, "db.sqlite3"),
        }
    }

# ---------------------------------------------------------------------------
# Application definition
# ---------------------------------------------------------------------------
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "apps.locationapp.apps.LocationAppConfig",
    "apps.serviceapp.apps.ServiceAppConfig",
    "apps.staffapp.apps.StaffAppConfig",
    "apps.customersapp.apps.CustomersConfig",
    "apps.bookingapp.apps.BookingAppConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "bookingengine.urls"
WSGI_APPLICATION = "bookingengine.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# ---------------------------------------------------------------------------
# REST Framework
# ---------------------------------------------------------------------------
# Authentication is handled upstream of this engine.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.AllowAny",),
    "DEFAULT_RENDERER_CLASSES": ("rest_framework.renderers.JSONRenderer",),
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": "120/minute",
    },
    "EXCEPTION_HANDLER": "core.exceptions.exception_handler.custom_exception_handler",
    "UNAUTHENTICATED_USER": None,
}

# ---------------------------------------------------------------------------
# Celery: notification bus transport
# ---------------------------------------------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL", "redis://redis:6379/2")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", "redis://redis:6379/3")
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_IGNORE_RESULT = True
CELERY_TASK_ALWAYS_EAGER = config("CELERY_TASK_ALWAYS_EAGER", default=False, cast=bool)

# ---------------------------------------------------------------------------
# Cache (also backs the per-staff booking locks)
# ---------------------------------------------------------------------------
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": env("REDIS_URL", "redis://redis:6379/1"),
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
    }
}

# ---------------------------------------------------------------------------
# I18N / L10N
# ---------------------------------------------------------------------------
LANGUAGE_CODE = "en"
TIME_ZONE = env("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------------
# Booking engine
# ---------------------------------------------------------------------------
BOOKING_ENGINE = {
    "SLOT_STEP_MINUTES": config("BOOKING_SLOT_STEP_MINUTES", default=15, cast=int),
    "ALTERNATIVE_SEARCH_DAYS": config("BOOKING_ALTERNATIVE_SEARCH_DAYS", default=7, cast=int),
    "DEFAULT_ALTERNATIVE_COUNT": config("BOOKING_DEFAULT_ALTERNATIVE_COUNT", default=3, cast=int),
    "CONFLICT_ALTERNATIVE_COUNT": config("BOOKING_CONFLICT_ALTERNATIVE_COUNT", default=5, cast=int),
    "NEARBY_SLOT_WINDOW_MINUTES": config("BOOKING_NEARBY_SLOT_WINDOW_MINUTES", default=120, cast=int),
    "NEARBY_SLOT_LIMIT": config("BOOKING_NEARBY_SLOT_LIMIT", default=3, cast=int),
    "WORKDAY_MINUTES": config("BOOKING_WORKDAY_MINUTES", default=480, cast=int),
    "VIP_PRIME_START_HOUR": config("BOOKING_VIP_PRIME_START_HOUR", default=10, cast=int),
    "VIP_PRIME_END_HOUR": config("BOOKING_VIP_PRIME_END_HOUR", default=14, cast=int),
    "COMMIT_MAX_ATTEMPTS": config("BOOKING_COMMIT_MAX_ATTEMPTS", default=3, cast=int),
    "COMMIT_RETRY_DELAY_SECONDS": config("BOOKING_COMMIT_RETRY_DELAY_SECONDS", default=0.05, cast=float),
    "STAFF_LOCK_EXPIRES_SECONDS": config("BOOKING_STAFF_LOCK_EXPIRES_SECONDS", default=30, cast=int),
    "STAFF_LOCK_TIMEOUT_SECONDS": config("BOOKING_STAFF_LOCK_TIMEOUT_SECONDS", default=5, cast=float),
    "AUTO_RESOLUTION_MAX_ATTEMPTS": config("BOOKING_AUTO_RESOLUTION_MAX_ATTEMPTS", default=3, cast=int),
    "AUTO_RESOLUTION_MIN_CONFIDENCE": config("BOOKING_AUTO_RESOLUTION_MIN_CONFIDENCE", default=0.7, cast=float),
    "DEFAULT_TIMEZONE": config("BOOKING_DEFAULT_TIMEZONE", default="UTC"),
}

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {"format": "{levelname} {message}", "style": "{"},
    },
    "handlers": {
        "console": {
            "level": "DEBUG" if DEBUG else "INFO",
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
        "file": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "bookingengine.log",
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": "INFO",
            "propagate": True,
        },
        "bookingengine": {
            "handlers": ["console", "file"],
            "level": "INFO",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console", "file"],
            "level": "DEBUG" if DEBUG else "INFO",
            "propagate": False,
        },
        "algorithms": {
            "handlers": ["console", "file"],
            "level": "INFO",
            "propagate": False,
        },
    },
}
