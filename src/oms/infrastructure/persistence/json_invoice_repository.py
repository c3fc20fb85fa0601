"""JSON-file-backed implementations of InvoiceRepository and ShipmentRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from oms.domain.model.invoice import CarrierShipment, Invoice
from oms.domain.model.shipping import TaxComputationMethod
from oms.domain.model.value_objects import Money
from oms.domain.repository.invoice_repository import InvoiceRepository
from oms.domain.repository.shipment_repository import ShipmentRepository
from oms.infrastructure.persistence.json_collection import (
    JsonCollection,
    taxed_from_raw,
    taxed_to_raw,
)


class JsonInvoiceRepository(InvoiceRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "Invoice")

    # --- InvoiceRepository interface ------------------------------------------

    def get_by_id(self, invoice_id: int) -> Invoice | None:
        raw = self._records.find(lambda r: r["id"] == invoice_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def list_for_order(self, order_id: int) -> list[Invoice]:
        records = self._records.filter(lambda r: r["order_id"] == order_id)
        return self._records.decode_all(sorted(records, key=lambda r: r["id"]), self._to_domain)

    def last_number(self) -> int:
        return max((raw["number"] for raw in self._records.load()), default=0)

    def save(self, invoice: Invoice) -> None:
        if invoice.id is None:
            invoice.id = self._records.next_id()
        self._records.upsert(self._to_raw(invoice))

    def delete(self, invoice_id: int) -> None:
        self._records.remove(lambda r: r["id"] == invoice_id)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(invoice: Invoice) -> dict:
        return {
            "id": invoice.id,
            "order_id": invoice.order_id,
            "number": invoice.number,
            "products": taxed_to_raw(invoice.products),
            "shipping": taxed_to_raw(invoice.shipping),
            "wrapping": taxed_to_raw(invoice.wrapping),
            "paid": taxed_to_raw(invoice.paid),
            "shipping_tax_computation_method": invoice.shipping_tax_computation_method.value,
            "carrier_taxes": [str(tax.amount) for tax in invoice.carrier_taxes],
            "created_at": invoice.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Invoice:
        paid = taxed_from_raw(raw["paid"])
        return Invoice(
            id=raw["id"],
            order_id=raw["order_id"],
            number=raw["number"],
            products=taxed_from_raw(raw["products"]),
            shipping=taxed_from_raw(raw["shipping"]),
            wrapping=taxed_from_raw(raw["wrapping"]),
            paid=paid,
            shipping_tax_computation_method=TaxComputationMethod(
                raw.get("shipping_tax_computation_method", 0)
            ),
            carrier_taxes=[Money(Decimal(t), paid.currency) for t in raw.get("carrier_taxes", [])],
            created_at=datetime.fromisoformat(raw["created_at"]),
        )


class JsonShipmentRepository(ShipmentRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "CarrierShipment")

    def list_for_order(self, order_id: int) -> list[CarrierShipment]:
        return self._records.decode_all(
            self._records.filter(lambda r: r["order_id"] == order_id), self._to_domain
        )

    def get_by_invoice_id(self, invoice_id: int) -> CarrierShipment | None:
        raw = self._records.find(lambda r: r.get("invoice_id") == invoice_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def save(self, shipment: CarrierShipment) -> None:
        if shipment.id is None:
            shipment.id = self._records.next_id()
        self._records.upsert(self._to_raw(shipment))

    def delete(self, shipment_id: int) -> None:
        self._records.remove(lambda r: r["id"] == shipment_id)

    @staticmethod
    def _to_raw(shipment: CarrierShipment) -> dict:
        return {
            "id": shipment.id,
            "order_id": shipment.order_id,
            "carrier_id": shipment.carrier_id,
            "invoice_id": shipment.invoice_id,
            "weight": str(shipment.weight),
            "shipping_cost": taxed_to_raw(shipment.shipping_cost),
        }

    @staticmethod
    def _to_domain(raw: dict) -> CarrierShipment:
        return CarrierShipment(
            id=raw["id"],
            order_id=raw["order_id"],
            carrier_id=raw["carrier_id"],
            invoice_id=raw.get("invoice_id"),
            weight=Decimal(raw.get("weight", "0")),
            shipping_cost=taxed_from_raw(raw["shipping_cost"]),
        )
