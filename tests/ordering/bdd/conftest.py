"""Shared BDD fixtures and step definitions for orders."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from commerce.catalogue.product import Product, StockStatus
from commerce.ordering.order import Order


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def cart():
    return []


@given(parsers.cfparse('a product "{name}" priced {price:g} with {stock:d} in stock'))
def _(add_product, products, name, price, stock):
    products[name] = add_product(name=name, price=price, stock=stock)


@given(parsers.cfparse("shipping costs {charge:g} below an order value of {threshold:g}"))
def _(store_settings, charge, threshold):
    store_settings(shipping_charges=charge, free_shipping_threshold=threshold)


@given(parsers.cfparse('the cart holds {quantity:d} "{name}"'))
def _(cart, products, quantity, name):
    cart.append((products[name], quantity))


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(products, name, stock):
    assert current_domain.repository_for(Product).get(products[name]).stock_quantity == stock


@then(parsers.cfparse('"{name}" is out of stock'))
def _(products, name):
    product = current_domain.repository_for(Product).get(products[name])
    assert product.stock_quantity == 0
    assert product.stock_status == StockStatus.OUT_OF_STOCK.value


@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert current_domain.repository_for(Order).get(str(order.id)).status == status
