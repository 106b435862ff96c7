# core/tests/test_exception_handler.py
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.utils import IntegrityError
from django.test import SimpleTestCase
from rest_framework.exceptions import NotFound

from core.exceptions.custom_exceptions import (
    CommitRaceException,
    ResourceNotFoundException,
    SchedulingConflictException,
)
from core.exceptions.exception_handler import custom_exception_handler, get_error_code


class ExceptionHandlerTest(SimpleTestCase):
    """Test cases for the DRF exception handler"""

    def test_api_exception_uses_to_dict(self):
        response = custom_exception_handler(ResourceNotFoundException(errors={"staff_id": ["x"]}), {})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "ResourceNotFoundException")
        self.assertEqual(response.data["errors"], {"staff_id": ["x"]})
        self.assertNotIn("retryable", response.data)

    def test_scheduling_conflict_lists_sorted_kinds(self):
        exc = SchedulingConflictException(conflicts=["STAFF_UNAVAILABLE", "DOUBLE_BOOKING"])
        response = custom_exception_handler(exc, {})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["errors"], {"conflicts": ["DOUBLE_BOOKING", "STAFF_UNAVAILABLE"]})

    def test_commit_race_is_retryable(self):
        response = custom_exception_handler(CommitRaceException(), {})

        self.assertEqual(response.status_code, 409)
        self.assertTrue(response.data["retryable"])

    def test_django_validation_error(self):
        response = custom_exception_handler(DjangoValidationError({"end_time": ["Too early"]}), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertEqual(response.data["errors"]["end_time"][0], "Too early")

    def test_integrity_error(self):
        response = custom_exception_handler(IntegrityError("duplicate"), {})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "integrity_error")

    def test_drf_not_found(self):
        response = custom_exception_handler(NotFound(), {})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "not_found")

    def test_unknown_exception_is_left_to_django(self):
        self.assertIsNone(custom_exception_handler(RuntimeError("boom"), {}))
        self.assertEqual(get_error_code(RuntimeError("boom")), "runtime")
