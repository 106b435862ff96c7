"""
Development settings for the booking engine.

These settings override the base settings for local development environments.
"""

import os

from .base import *

SECRET_KEY = env("SECRET_KEY", "django-insecure-development-key-not-for-production")

DEBUG = env("DEBUG", "True") == "True"

ALLOWED_HOSTS = ["*"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("POSTGRES_DB", "bookingengine"),
        "USER": os.environ.get("POSTGRES_USER", "bookingengine"),
        "PASSWORD": os.environ.get("POSTGRES_PASSWORD", "bookingengine"),
        "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "CONN_MAX_AGE": 300,
        "OPTIONS": {
            "connect_timeout": 5,
        },
    }
}

# Local memory cache is enough for single-process development
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "bookingengine-dev",
    }
}

# Run notification tasks inline unless a worker is configured
CELERY_TASK_ALWAYS_EAGER = env("CELERY_TASK_ALWAYS_EAGER", "True") == "True"

LOGGING["loggers"]["apps"]["level"] = "DEBUG"
