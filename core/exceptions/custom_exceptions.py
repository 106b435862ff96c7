"""
Custom exceptions for the booking engine.

This module defines the hierarchy of exceptions raised by the booking
services so that views, tasks and the DRF exception handler report errors
consistently.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import status


class APIException(Exception):
    """Base exception for all API-related exceptions."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = _("An unexpected error occurred.")
    retryable = False

    def __init__(self, message=None, status_code=None, errors=None):
        self.message = message or self.default_message
        if status_code:
            self.status_code = status_code
        self.errors = errors
        super().__init__(self.message)

    @property
    def error_code(self):
        return self.__class__.__name__

    def to_dict(self):
        """Convert exception to dictionary representation."""
        error_dict = {
            "message": str(self.message),
            "status_code": self.status_code,
            "code": self.error_code,
        }

        if self.errors:
            error_dict["errors"] = self.errors

        if self.retryable:
            error_dict["retryable"] = True

        return error_dict


class InvalidDataException(APIException):
    """Exception raised when request data is invalid."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = _("Invalid data provided.")


class ResourceNotFoundException(APIException):
    """Exception raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = _("The requested resource was not found.")


class InactiveResourceException(APIException):
    """Exception raised when a resource exists but is not accepting bookings."""

    status_code = status.HTTP_409_CONFLICT
    default_message = _("The requested resource is inactive.")


class InvalidOperationException(APIException):
    """Exception raised when an operation is invalid in the current state."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = _("This operation is not valid in the current state.")


class SchedulingConflictException(APIException):
    """Exception raised when there's a scheduling conflict."""

    status_code = status.HTTP_409_CONFLICT
    default_message = _("A scheduling conflict was detected.")

    def __init__(self, message=None, conflicts=None, errors=None):
        self.conflicts = sorted(str(getattr(kind, "value", kind)) for kind in (conflicts or []))
        if errors is None and self.conflicts:
            errors = {"conflicts": self.conflicts}
        super().__init__(message=message, errors=errors)


class CommitRaceException(APIException):
    """
    Exception raised when a booking could not be committed because concurrent
    writers kept the staff member busy. The caller should re-check
    availability and try again.
    """

    status_code = status.HTTP_409_CONFLICT
    default_message = _("The slot is being booked by someone else. Please try again.")
    retryable = True
