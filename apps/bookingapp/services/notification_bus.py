import logging
from functools import partial
from typing import Any, Dict

from django.db import transaction

logger = logging.getLogger(__name__)


class NotificationBus:
    """
    Best-effort broadcaster for booking lifecycle events.

    Publishing hands the event to Celery and returns; a broker or task
    failure is logged and never propagates to the booking that triggered it.
    """

    def publish(self, event: str, payload: Dict[str, Any]) -> bool:
        from apps.bookingapp.tasks import publish_booking_event

        try:
            publish_booking_event.delay(event, payload)
            return True
        except Exception as e:
            logger.warning(f"Failed to publish {event}: {str(e)}")
            return False

    def publish_on_commit(self, event: str, payload: Dict[str, Any]) -> None:
        """
        Publish once the surrounding transaction commits.

        Events registered inside a transaction or savepoint that rolls back
        are discarded with it. Outside a transaction the event goes out
        immediately.
        """
        transaction.on_commit(partial(self.publish, event, dict(payload)))
