"""
Booking engine exceptions.

Import these from `core.exceptions` across the project instead of redefining
ad-hoc `Exception` subclasses in each app.
"""

from .custom_exceptions import (
    APIException,
    CommitRaceException,
    InactiveResourceException,
    InvalidDataException,
    InvalidOperationException,
    ResourceNotFoundException,
    SchedulingConflictException,
)

__all__ = [
    "APIException",
    "CommitRaceException",
    "InactiveResourceException",
    "InvalidDataException",
    "InvalidOperationException",
    "ResourceNotFoundException",
    "SchedulingConflictException",
]
