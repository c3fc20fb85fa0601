"""JSON-file-backed implementation of StockRepository."""

from __future__ import annotations

from pathlib import Path

from oms.domain.model.stock import StockLevel
from oms.domain.repository.stock_repository import StockRepository
from oms.infrastructure.persistence.json_collection import JsonCollection


class JsonStockRepository(StockRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "StockLevel")

    # --- StockRepository interface --------------------------------------------

    def get(self, product_id: int, variant_id: int | None) -> StockLevel | None:
        raw = self._records.find(
            lambda r: (r["product_id"], r.get("variant_id")) == (product_id, variant_id)
        )
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def list_for_product(self, product_id: int) -> list[StockLevel]:
        return self._records.decode_all(
            self._records.filter(lambda r: r["product_id"] == product_id), self._to_domain
        )

    def list_all(self) -> list[StockLevel]:
        return self._records.decode_all(self._records.load(), self._to_domain)

    def save(self, level: StockLevel) -> None:
        self._records.upsert(
            self._to_raw(level),
            same=lambda r: (r["product_id"], r.get("variant_id")) == level.key,
        )

    def delete_for_product(self, product_id: int) -> None:
        self._records.remove(lambda r: r["product_id"] == product_id)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(level: StockLevel) -> dict:
        return {
            "product_id": level.product_id,
            "variant_id": level.variant_id,
            "physical_quantity": level.physical_quantity,
            "reserved_quantity": level.reserved_quantity,
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockLevel:
        return StockLevel(
            product_id=raw["product_id"],
            variant_id=raw.get("variant_id"),
            physical_quantity=raw["physical_quantity"],
            reserved_quantity=raw.get("reserved_quantity", 0),
        )
