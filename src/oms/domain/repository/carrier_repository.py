"""Read-only repositories for shipping reference data."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.shipping import Address, Carrier


class CarrierRepository(ABC):

    @abstractmethod
    def get_by_id(self, carrier_id: int) -> Carrier | None:
        """Return a carrier by its ID, or None if not found."""


class AddressRepository(ABC):

    @abstractmethod
    def get_by_id(self, address_id: int) -> Address | None:
        """Return an address by its ID, or None if not found."""
