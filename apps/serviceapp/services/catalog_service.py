import logging
from decimal import Decimal
from typing import Iterable, List

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from apps.serviceapp.models import Service
from core.exceptions.custom_exceptions import InvalidDataException, ResourceNotFoundException

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Read access to the service catalog: duration, buffer time, price and
    active flag for each requested service.
    """

    def get_services(self, service_ids: Iterable) -> List[Service]:
        """
        Fetch active services in the requested order.

        Args:
            service_ids: Service ids; duplicates are kept so a service can be
                booked twice in one appointment

        Returns:
            List of Service records, one per requested id

        Raises:
            InvalidDataException: If no ids were given or an id is malformed
            ResourceNotFoundException: If a service is unknown or inactive
        """
        ids = [str(service_id) for service_id in service_ids or []]
        if not ids:
            raise InvalidDataException(_("At least one service is required."))

        try:
            services = {
                str(service.id): service
                for service in Service.objects.filter(id__in=set(ids), is_active=True)
            }
        except (ValidationError, ValueError):
            raise InvalidDataException(_("Invalid service id."))

        missing = [service_id for service_id in ids if service_id not in services]
        if missing:
            logger.warning(f"Requested unknown or inactive services: {missing}")
            raise ResourceNotFoundException(
                _("Service not found or inactive."), errors={"service_ids": missing}
            )

        return [services[service_id] for service_id in ids]

    @staticmethod
    def total_duration(services: Iterable[Service]) -> int:
        """Sum of duration plus buffer over every service, in minutes"""
        return sum(service.duration + service.buffer_time for service in services)

    @staticmethod
    def base_price(services: Iterable[Service]):
        """Sum of base prices; buffer time is never billed"""
        return sum((service.price for service in services), Decimal("0"))
