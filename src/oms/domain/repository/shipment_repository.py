"""Abstract repository for CarrierShipment records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.invoice import CarrierShipment


class ShipmentRepository(ABC):

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[CarrierShipment]:
        """Return every carrier shipment of an order."""

    @abstractmethod
    def get_by_invoice_id(self, invoice_id: int) -> CarrierShipment | None:
        """Return the shipment attached to an invoice, or None."""

    @abstractmethod
    def save(self, shipment: CarrierShipment) -> None:
        """Persist a new or updated shipment, assigning an id to new ones."""

    @abstractmethod
    def delete(self, shipment_id: int) -> None:
        """Remove a shipment."""
