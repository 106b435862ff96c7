"""
Production settings for the booking engine.

These settings override the base settings for production environments.
"""

import os

from .base import *
from .base import env

DEBUG = os.environ.get("DEBUG", "False").lower() == "true"

SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    raise ValueError("SECRET_KEY environment variable not set!")

ALLOWED_HOSTS = [host.strip() for host in env("ALLOWED_HOSTS", required=True).split(",")]

DATABASES["default"]["OPTIONS"]["sslmode"] = os.environ.get("POSTGRES_SSL_MODE", "prefer")

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = os.environ.get("SECURE_SSL_REDIRECT", "True").lower() == "true"
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# Notification events are always delivered through the broker in production
CELERY_TASK_ALWAYS_EAGER = False

LOGGING["handlers"]["console"]["level"] = "INFO"
LOGGING["loggers"]["apps"]["level"] = "INFO"
