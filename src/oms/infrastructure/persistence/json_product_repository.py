"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from oms.domain.model.product import OutOfStockPolicy, Product, Variant
from oms.domain.repository.product_repository import ProductRepository
from oms.infrastructure.persistence.json_collection import JsonCollection


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "Product")

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: int) -> Product | None:
        raw = self._records.find(lambda r: r["id"] == product_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def list_all(self) -> list[Product]:
        return self._records.decode_all(self._records.load(), self._to_domain)

    def save(self, product: Product) -> None:
        self._records.upsert(self._to_raw(product))

    def delete(self, product_id: int) -> bool:
        return self._records.remove(lambda r: r["id"] == product_id) > 0

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "price": str(product.price),
            "tax_rate": str(product.tax_rate),
            "minimal_quantity": product.minimal_quantity,
            "out_of_stock": product.out_of_stock.value,
            "weight": str(product.weight),
            "active": product.active,
            "available_for_order": product.available_for_order,
            "variants": [
                {
                    "id": v.id,
                    "reference": v.reference,
                    "price_impact": str(v.price_impact),
                    "weight_impact": str(v.weight_impact),
                    "minimal_quantity": v.minimal_quantity,
                }
                for v in product.variants
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Decimal(raw["price"]),
            tax_rate=Decimal(raw.get("tax_rate", "0")),
            minimal_quantity=raw.get("minimal_quantity", 1),
            out_of_stock=OutOfStockPolicy(raw.get("out_of_stock", "default")),
            weight=Decimal(raw.get("weight", "0")),
            active=raw.get("active", True),
            available_for_order=raw.get("available_for_order", True),
            variants=[
                Variant(
                    id=v["id"],
                    product_id=raw["id"],
                    reference=v.get("reference", ""),
                    price_impact=Decimal(v.get("price_impact", "0")),
                    weight_impact=Decimal(v.get("weight_impact", "0")),
                    minimal_quantity=v.get("minimal_quantity", 1),
                )
                for v in raw.get("variants", [])
            ],
        )
