"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from oms.domain.model.order import (
    Order,
    OrderDiscount,
    OrderLine,
    OrderState,
    OrderTotals,
)
from oms.domain.model.value_objects import Quantity
from oms.domain.repository.order_repository import OrderRepository
from oms.infrastructure.persistence.json_collection import (
    JsonCollection,
    money_from_raw,
    money_to_raw,
    taxed_from_raw,
    taxed_to_raw,
)


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "Order")

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        raw = self._records.find(lambda r: r["id"] == order_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self._records.next_id()

        new_lines = [line for line in order.lines if line.id is None]
        if new_lines:
            next_line_id = self._next_line_id()
            for line in new_lines:
                line.id = next_line_id
                next_line_id += 1

        self._records.upsert(self._to_raw(order))

    def _next_line_id(self) -> int:
        line_ids = [line["id"] for raw in self._records.load() for line in raw["lines"]]
        return max(line_ids, default=0) + 1

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        totals = order.totals
        return {
            "id": order.id,
            "customer_id": order.customer_id,
            "cart_id": order.cart_id,
            "carrier_id": order.carrier_id,
            "currency": order.currency,
            "conversion_rate": str(order.conversion_rate),
            "state": order.state.value,
            "address_delivery_id": order.address_delivery_id,
            "address_invoice_id": order.address_invoice_id,
            "created_at": order.created_at.isoformat(),
            "invoice_ids": list(order.invoice_ids),
            "lines": [
                {
                    "id": line.id,
                    "product_id": line.product_id,
                    "variant_id": line.variant_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity.value,
                    "unit_price": taxed_to_raw(line.unit_price),
                    "total_price": taxed_to_raw(line.total_price),
                    "tax_rate": str(line.tax_rate),
                    "invoice_id": line.invoice_id,
                    "unit_weight": str(line.unit_weight),
                    "unit_tax_amount": money_to_raw(line.unit_tax_amount),
                    "total_tax_amount": money_to_raw(line.total_tax_amount),
                }
                for line in order.lines
            ],
            "discounts": [
                {
                    "rule_id": d.rule_id,
                    "name": d.name,
                    "value": taxed_to_raw(d.value),
                    "free_shipping": d.free_shipping,
                    "invoice_id": d.invoice_id,
                }
                for d in order.discounts
            ],
            "totals": {
                "products": taxed_to_raw(totals.products),
                "shipping": taxed_to_raw(totals.shipping),
                "wrapping": taxed_to_raw(totals.wrapping),
                "discounts": taxed_to_raw(totals.discounts),
                "paid": taxed_to_raw(totals.paid),
            },
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]
        lines = [
            OrderLine(
                id=i["id"],
                product_id=i["product_id"],
                variant_id=i.get("variant_id"),
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price=taxed_from_raw(i["unit_price"]),
                total_price=taxed_from_raw(i["total_price"]),
                tax_rate=Decimal(i.get("tax_rate", "0")),
                invoice_id=i.get("invoice_id"),
                unit_weight=Decimal(i.get("unit_weight", "0")),
                unit_tax_amount=money_from_raw(i.get("unit_tax_amount"), currency),
                total_tax_amount=money_from_raw(i.get("total_tax_amount"), currency),
            )
            for i in raw["lines"]
        ]
        discounts = [
            OrderDiscount(
                rule_id=d["rule_id"],
                name=d["name"],
                value=taxed_from_raw(d["value"]),
                free_shipping=d.get("free_shipping", False),
                invoice_id=d.get("invoice_id"),
            )
            for d in raw.get("discounts", [])
        ]
        totals_raw = raw.get("totals")
        totals = (
            OrderTotals(**{k: taxed_from_raw(v) for k, v in totals_raw.items()})
            if totals_raw else None
        )
        return Order(
            id=raw["id"],
            customer_id=raw["customer_id"],
            cart_id=raw["cart_id"],
            carrier_id=raw["carrier_id"],
            currency=currency,
            conversion_rate=Decimal(raw.get("conversion_rate", "1")),
            state=OrderState(raw["state"]),
            address_delivery_id=raw.get("address_delivery_id"),
            address_invoice_id=raw.get("address_invoice_id"),
            lines=lines,
            discounts=discounts,
            invoice_ids=list(raw.get("invoice_ids", [])),
            totals=totals,
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
