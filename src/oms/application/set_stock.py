"""Application service: Set Stock use case."""

from __future__ import annotations

from oms.domain.exceptions import EntityNotFoundError
from oms.domain.model.stock import StockLevel
from oms.domain.repository.product_repository import ProductRepository
from oms.domain.repository.stock_repository import StockRepository
from oms.domain.service.stock_service import StockService


class SetStockHandler:

    def __init__(
        self,
        stock_repo: StockRepository,
        product_repo: ProductRepository,
        stock: StockService,
    ) -> None:
        self._stock_repo = stock_repo
        self._product_repo = product_repo
        self._stock = stock

    def handle(self, product_id: int, quantity: int, variant_id: int | None = None) -> None:
        """Set the physical quantity of a product (or variant) row."""
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product #{product_id} not found")
        if variant_id is not None:
            product.get_variant(variant_id)

        level = self._stock_repo.get(product_id, variant_id)
        if level is None:
            level = StockLevel(product_id=product_id, variant_id=variant_id, physical_quantity=0)
        level.set_physical_quantity(quantity)
        self._stock_repo.save(level)

        self._stock.synchronize(product)
