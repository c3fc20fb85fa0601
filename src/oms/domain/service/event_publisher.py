"""Outbound port for domain events."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.events import OrderEdited


class EventPublisher(ABC):

    @abstractmethod
    def publish(self, event: OrderEdited) -> None:
        """Hand an event to external subscribers."""
