"""Application service: Show Stock use case (query)."""

from __future__ import annotations

from oms.application.dto import StockLineDTO
from oms.domain.repository.product_repository import ProductRepository
from oms.domain.repository.stock_repository import StockRepository


class ShowStockHandler:

    def __init__(self, stock_repo: StockRepository, product_repo: ProductRepository) -> None:
        self._stock_repo = stock_repo
        self._product_repo = product_repo

    def handle(self) -> list[StockLineDTO]:
        names = {p.id: p.name for p in self._product_repo.list_all()}
        levels = sorted(
            self._stock_repo.list_all(),
            key=lambda l: (l.product_id, l.variant_id is not None, l.variant_id or 0),
        )
        return [
            StockLineDTO(
                product_id=level.product_id,
                product_name=names.get(level.product_id, "?"),
                variant_id=level.variant_id,
                physical=level.physical_quantity,
                reserved=level.reserved_quantity,
                available=level.available_quantity,
            )
            for level in levels
        ]
