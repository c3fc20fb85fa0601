"""Integration tests for the SetStock and ShowStock use cases."""

import pytest

from oms.application.set_stock import SetStockHandler
from oms.application.show_stock import ShowStockHandler
from oms.domain.exceptions import EntityNotFoundError, ValidationError
from tests.builders import BULK, SHIRT, SHIRT_M, SHIRT_S, WIDGET, Shop


def _set(shop: Shop) -> SetStockHandler:
    return SetStockHandler(shop.stock_levels, shop.products, shop.stock)


class TestSetStock:

    def test_sets_physical_quantity(self):
        shop = Shop()
        _set(shop).handle(WIDGET, 40)
        assert shop.stock_levels.get(WIDGET, None).physical_quantity == 40

    def test_variant_resynchronises_product(self):
        shop = Shop()
        _set(shop).handle(SHIRT, 20, variant_id=SHIRT_S)

        assert shop.stock_levels.get(SHIRT, SHIRT_S).physical_quantity == 20
        assert shop.stock_levels.get(SHIRT, None).physical_quantity == 25

    def test_creates_missing_row(self):
        shop = Shop(levels=[])
        _set(shop).handle(BULK, 12)
        assert shop.stock_levels.get(BULK, None).physical_quantity == 12

    def test_unknown_product(self):
        with pytest.raises(EntityNotFoundError, match="Product #404"):
            _set(Shop()).handle(404, 1)

    def test_unknown_variant(self):
        with pytest.raises(EntityNotFoundError, match="Variant #99"):
            _set(Shop()).handle(SHIRT, 1, variant_id=99)

    def test_negative_quantity(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _set(Shop()).handle(WIDGET, -5)


class TestShowStock:

    def test_lists_product_rows_before_variants(self):
        shop = Shop()
        lines = ShowStockHandler(shop.stock_levels, shop.products).handle()

        keys = [(l.product_id, l.variant_id) for l in lines]
        assert keys == [
            (WIDGET, None),
            (SHIRT, None),
            (SHIRT, SHIRT_S),
            (SHIRT, SHIRT_M),
            (BULK, None),
        ]
        assert lines[0].product_name == "Widget"
        assert lines[0].available == 100
