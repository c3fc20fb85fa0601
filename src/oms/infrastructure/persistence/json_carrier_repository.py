"""JSON-file-backed carriers and addresses (reference data, read only)."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from oms.domain.model.shipping import Address, Carrier, TaxComputationMethod
from oms.domain.repository.carrier_repository import AddressRepository, CarrierRepository
from oms.infrastructure.persistence.json_collection import JsonCollection, decimal_or_none


class JsonCarrierRepository(CarrierRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "Carrier")

    def get_by_id(self, carrier_id: int) -> Carrier | None:
        raw = self._records.find(lambda r: r["id"] == carrier_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    @staticmethod
    def _to_domain(raw: dict) -> Carrier:
        return Carrier(
            id=raw["id"],
            name=raw["name"],
            shipping_cost=Decimal(raw.get("shipping_cost", "0")),
            free_shipping_threshold=decimal_or_none(raw.get("free_shipping_threshold")),
            tax_rates={
                country: tuple(Decimal(rate) for rate in rates)
                for country, rates in raw.get("tax_rates", {}).items()
            },
            computation_method=TaxComputationMethod(raw.get("computation_method", 0)),
        )


class JsonAddressRepository(AddressRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "Address")

    def get_by_id(self, address_id: int) -> Address | None:
        raw = self._records.find(lambda r: r["id"] == address_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    @staticmethod
    def _to_domain(raw: dict) -> Address:
        return Address(
            id=raw["id"],
            customer_id=raw["customer_id"],
            country_iso=raw["country_iso"],
        )
