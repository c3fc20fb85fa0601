"""EventPublisher adapter that writes domain events to the log."""

from __future__ import annotations

import logging

from oms.domain.model.events import OrderEdited
from oms.domain.service.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class LoggingEventPublisher(EventPublisher):

    def publish(self, event: OrderEdited) -> None:
        logger.info(
            "event=%s order_id=%s occurred_at=%s",
            event.name, event.order_id, event.occurred_at.isoformat(),
        )
