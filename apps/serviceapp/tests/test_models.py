# apps/serviceapp/tests/test_models.py
from decimal import Decimal

from django.test import TestCase

from apps.serviceapp.models import Service


class ServiceModelTest(TestCase):
    """Test cases for the Service model"""

    def test_total_duration(self):
        service = Service.objects.create(name="Massage", price=Decimal("150.00"), duration=50, buffer_time=10)
        self.assertEqual(service.total_duration, 60)
        self.assertEqual(str(service), "Massage")

    def test_defaults(self):
        service = Service.objects.create(name="Trim", price=Decimal("30.00"), duration=15)
        self.assertEqual(service.buffer_time, 0)
        self.assertTrue(service.is_active)
