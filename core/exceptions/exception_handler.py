"""
Global exception handler for the booking engine.

This module provides a custom exception handler for DRF that handles
custom exceptions and provides consistent error responses.
"""

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.utils import DatabaseError, IntegrityError
from django.http import Http404
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .custom_exceptions import APIException

logger = logging.getLogger(__name__)


def get_error_code(exception: Exception) -> str:
    """
    Get standardized error code from exception.

    Args:
        exception: The exception to get code for

    Returns:
        str: Standardized error code
    """
    if isinstance(exception, APIException):
        return exception.error_code
    elif isinstance(exception, ValidationError):
        return "validation_error"
    elif isinstance(exception, PermissionDenied):
        return "permission_denied"
    elif isinstance(exception, (Http404, NotFound, ObjectDoesNotExist)):
        return "not_found"
    elif isinstance(exception, IntegrityError):
        return "integrity_error"
    elif isinstance(exception, DatabaseError):
        return "database_error"
    else:
        # Convert exception class name to snake case
        return (
            exception.__class__.__name__.lower()
            .replace("error", "")
            .replace("exception", "")
        )


def get_error_details(exception: Exception) -> Optional[Dict[str, Any]]:
    """Get detailed validation information from exception, if any."""
    if (
        isinstance(exception, ValidationError)
        and hasattr(exception, "detail")
        and not isinstance(exception.detail, str)
    ):
        if isinstance(exception.detail, list):
            return {"validation_errors": exception.detail}
        return exception.detail

    return None


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """
    Custom exception handler for DRF views.

    Renders booking engine exceptions through ``to_dict()`` and wraps DRF's
    own exceptions in the same ``message``/``status_code``/``code`` shape.

    Args:
        exc: The exception
        context: The exception context

    Returns:
        Response: Consistent error response
    """
    if isinstance(exc, APIException):
        if exc.status_code >= 500:
            logger.error(f"Exception: {exc.error_code} - {exc.message}", exc_info=exc)
        else:
            logger.warning(f"Exception: {exc.error_code} - {exc.message} (view: {context.get('view')})")
        return Response(exc.to_dict(), status=exc.status_code)

    # Handle Django ValidationError by converting to DRF ValidationError
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            exc = ValidationError(detail=exc.message_dict)
        else:
            exc = ValidationError(detail=exc.messages)

    response = drf_exception_handler(exc, context)
    error_code = get_error_code(exc)
    error_details = get_error_details(exc)

    if response is None:
        if isinstance(exc, IntegrityError):
            logger.error(f"Exception: {error_code} - {exc}")
            return Response(
                {
                    "message": str(_("A conflict occurred with the existing data")),
                    "status_code": status.HTTP_409_CONFLICT,
                    "code": error_code,
                },
                status=status.HTTP_409_CONFLICT,
            )
        # Unhandled, let Django produce a 500
        logger.exception("Unhandled API exception", exc_info=exc)
        return None

    logger.warning(f"Exception: {error_code} - {exc}")

    message = getattr(exc, "detail", str(exc))
    if not isinstance(message, str):
        message = str(_("Invalid data provided."))

    response.data = {
        "message": str(message),
        "status_code": response.status_code,
        "code": error_code,
        **({"errors": error_details} if error_details is not None else {}),
    }
    return response
