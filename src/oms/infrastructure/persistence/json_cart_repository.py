"""JSON-file-backed implementation of CartRepository."""

from __future__ import annotations

from pathlib import Path

from oms.domain.model.cart import Cart, CartLine, PriceOverride
from oms.domain.repository.cart_repository import CartRepository
from oms.infrastructure.persistence.json_collection import (
    JsonCollection,
    taxed_from_raw,
    taxed_to_raw,
)


class JsonCartRepository(CartRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "Cart")

    # --- CartRepository interface ---------------------------------------------

    def get_by_order_id(self, order_id: int) -> Cart | None:
        raw = self._records.find(lambda r: r.get("order_id") == order_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def save(self, cart: Cart) -> None:
        self._records.upsert(self._to_raw(cart))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(cart: Cart) -> dict:
        return {
            "id": cart.id,
            "order_id": cart.order_id,
            "currency": cart.currency,
            "customer_id": cart.customer_id,
            "carrier_id": cart.carrier_id,
            "address_delivery_id": cart.address_delivery_id,
            "shop_id": cart.shop_id,
            "gift_wrapping": cart.gift_wrapping,
            "computing_precision": cart.computing_precision,
            "discount_rule_ids": list(cart.discount_rule_ids),
            "lines": [
                {
                    "product_id": line.product_id,
                    "variant_id": line.variant_id,
                    "quantity": line.quantity,
                }
                for line in cart.lines
            ],
            "price_overrides": [
                {
                    "product_id": o.product_id,
                    "variant_id": o.variant_id,
                    "price": taxed_to_raw(o.price),
                }
                for o in cart.price_overrides
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Cart:
        return Cart(
            id=raw["id"],
            order_id=raw.get("order_id"),
            currency=raw["currency"],
            customer_id=raw["customer_id"],
            carrier_id=raw["carrier_id"],
            address_delivery_id=raw.get("address_delivery_id"),
            shop_id=raw.get("shop_id", 1),
            gift_wrapping=raw.get("gift_wrapping", False),
            computing_precision=raw.get("computing_precision", 2),
            discount_rule_ids=list(raw.get("discount_rule_ids", [])),
            lines=[
                CartLine(l["product_id"], l.get("variant_id"), l["quantity"])
                for l in raw.get("lines", [])
            ],
            price_overrides=[
                PriceOverride(o["product_id"], o.get("variant_id"), taxed_from_raw(o["price"]))
                for o in raw.get("price_overrides", [])
            ],
        )
