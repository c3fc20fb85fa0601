"""Abstract repository for StockLevel aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.stock import StockLevel


class StockRepository(ABC):

    @abstractmethod
    def get(self, product_id: int, variant_id: int | None) -> StockLevel | None:
        """Return the stock row of a product/variant, or None."""

    @abstractmethod
    def list_for_product(self, product_id: int) -> list[StockLevel]:
        """Return the product-level row and every variant row of a product."""

    @abstractmethod
    def list_all(self) -> list[StockLevel]:
        """Return every stock row."""

    @abstractmethod
    def save(self, level: StockLevel) -> None:
        """Persist a new or updated stock row."""

    @abstractmethod
    def delete_for_product(self, product_id: int) -> None:
        """Drop every stock row of a product."""
