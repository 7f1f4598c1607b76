"""Tests for Product stock counters: size fallback, status flips, overrides."""

import json

import pytest
from protean.exceptions import ValidationError

from commerce.catalogue.events import ProductOutOfStock, StockDeducted
from commerce.catalogue.product import Product, StockStatus


def _product(stock=10, size_stock=None):
    return Product.create(name="Tee", sku="TEE-001", price=500.0, stock_quantity=stock, size_stock=size_stock)


class TestDeduct:
    def test_general_count_moves(self):
        product = _product(stock=10)
        product.deduct_stock(3)
        assert product.stock_quantity == 7
        assert any(isinstance(e, StockDeducted) for e in product._events)

    def test_insufficient_stock_leaves_counters_untouched(self):
        product = _product(stock=1)
        with pytest.raises(ValidationError) as exc:
            product.deduct_stock(2)
        assert "Insufficient stock for Tee. Available: 1, Required: 2" in str(exc.value)
        assert product.stock_quantity == 1

    def test_tracked_size_moves_both_counters(self):
        product = _product(stock=10, size_stock={"M": 4})
        assert product.deduct_stock(3, size="M") is True
        assert product.size_stock_map()["M"] == 1
        assert product.stock_quantity == 7

    def test_tracked_size_limits_the_sale(self):
        product = _product(stock=10, size_stock={"M": 2})
        with pytest.raises(ValidationError) as exc:
            product.deduct_stock(3, size="M")
        assert "Tee - Size M" in str(exc.value)

    def test_zero_size_count_falls_back_to_general(self):
        product = _product(stock=5, size_stock={"M": 0})
        assert product.deduct_stock(2, size="M") is False
        assert product.stock_quantity == 3
        assert json.loads(product.size_stock) == {"M": 0}

    def test_untracked_size_uses_general_count(self):
        product = _product(stock=5, size_stock={"M": 4})
        product.deduct_stock(5, size="XL")
        assert product.stock_quantity == 0

    def test_reaching_zero_marks_out_of_stock(self):
        product = _product(stock=1)
        product.deduct_stock(1)
        assert product.stock_status == StockStatus.OUT_OF_STOCK.value
        assert any(isinstance(e, ProductOutOfStock) for e in product._events)

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _product().deduct_stock(0)


class TestRestore:
    def test_restock_flips_back_to_in_stock(self):
        product = _product(stock=1)
        product.deduct_stock(1)
        product.restore_stock(1)
        assert product.stock_quantity == 1
        assert product.stock_status == StockStatus.IN_STOCK.value

    def test_known_size_is_restored(self):
        product = _product(stock=10, size_stock={"M": 4})
        product.deduct_stock(2, size="M")
        product.restore_stock(2, size="M")
        assert product.size_stock_map()["M"] == 4
        assert product.stock_quantity == 10

    def test_forced_out_of_stock_survives_restock(self):
        product = _product(stock=3)
        product.force_out_of_stock()
        product.restore_stock(2)
        assert product.stock_quantity == 5
        assert product.stock_status == StockStatus.OUT_OF_STOCK.value

    def test_clearing_the_override_recomputes_status(self):
        product = _product(stock=3)
        product.force_out_of_stock()
        product.clear_stock_override()
        assert product.stock_status == StockStatus.IN_STOCK.value

    def test_non_positive_restore_is_ignored(self):
        product = _product(stock=3)
        product.restore_stock(0)
        assert product.stock_quantity == 3


def test_new_product_without_stock_is_out_of_stock():
    assert _product(stock=0).stock_status == StockStatus.OUT_OF_STOCK.value
