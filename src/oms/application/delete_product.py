"""Application service: Delete Product use case.

Bulk deletion loads every product first so an unknown id aborts the
whole batch before anything is removed.
"""

from __future__ import annotations

import logging

from oms.domain.exceptions import CannotDeleteProductError, EntityNotFoundError
from oms.domain.model.product import Product
from oms.domain.repository.product_repository import ProductRepository
from oms.domain.repository.stock_repository import StockRepository

logger = logging.getLogger(__name__)


class DeleteProductHandler:

    def __init__(self, product_repo: ProductRepository, stock_repo: StockRepository) -> None:
        self._product_repo = product_repo
        self._stock_repo = stock_repo

    def delete(self, product_id: int) -> None:
        self._delete(self._get_product(product_id))

    def bulk_delete(self, product_ids: list[int]) -> None:
        products = [self._get_product(product_id) for product_id in product_ids]
        for product in products:
            self._delete(product)

    def _delete(self, product: Product) -> None:
        if not self._product_repo.delete(product.id):
            raise CannotDeleteProductError(f"Failed to delete product #{product.id}")
        self._stock_repo.delete_for_product(product.id)
        logger.info("Deleted product #%s (%s)", product.id, product.name)

    def _get_product(self, product_id: int) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product #{product_id} was not found")
        return product
