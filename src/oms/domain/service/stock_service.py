"""Domain service: Stock availability.

Coordinates the product catalogue (out-of-stock policy) with the
stock rows of a product and its variants.
"""

from __future__ import annotations

import copy

from oms.domain.model.product import Product
from oms.domain.model.stock import StockLevel
from oms.domain.repository.stock_repository import StockRepository


class StockService:

    def __init__(
        self,
        stock_repo: StockRepository,
        allow_out_of_stock_ordering: bool = False,
    ) -> None:
        self._stock_repo = stock_repo
        self._allow_out_of_stock_ordering = allow_out_of_stock_ordering

    def is_available_when_out_of_stock(self, product: Product) -> bool:
        return product.is_available_when_out_of_stock(self._allow_out_of_stock_ordering)

    def available_quantity(self, product_id: int, variant_id: int | None) -> int:
        level = self._stock_repo.get(product_id, variant_id)
        return level.available_quantity if level is not None else 0

    def reserve(self, product: Product, variant_id: int | None, quantity: int) -> None:
        """Take *quantity* units of a product/variant out of saleable stock."""
        level = self._stock_repo.get(product.id, variant_id)
        if level is None:
            level = StockLevel(product_id=product.id, variant_id=variant_id, physical_quantity=0)
        level.reserve(quantity, allow_backorder=self.is_available_when_out_of_stock(product))
        self._stock_repo.save(level)

    def snapshot(self, product: Product) -> list[StockLevel]:
        return copy.deepcopy(self._stock_repo.list_for_product(product.id))

    def restore(self, product: Product, levels: list[StockLevel]) -> None:
        """Put the stock rows of a product back to a previous ``snapshot``."""
        self._stock_repo.delete_for_product(product.id)
        for level in levels:
            self._stock_repo.save(level)

    def synchronize(self, product: Product) -> None:
        """Recompute the product-level row from its variant rows.

        Products without variants keep a single row, already up to date.
        """
        levels = self._stock_repo.list_for_product(product.id)
        variant_levels = [level for level in levels if level.variant_id is not None]
        if not variant_levels:
            return

        product_level = self._stock_repo.get(product.id, None)
        if product_level is None:
            product_level = StockLevel(product_id=product.id, variant_id=None, physical_quantity=0)
        product_level.physical_quantity = sum(l.physical_quantity for l in variant_levels)
        product_level.reserved_quantity = sum(l.reserved_quantity for l in variant_levels)
        self._stock_repo.save(product_level)
