from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain

from commerce.ordering.order import Order
from commerce.ordering.status import update_order_status


@pytest.fixture()
def deliver():
    """Ship and deliver an order, optionally backdating the delivery."""

    def _deliver(order_id, delivered_ago=None):
        update_order_status(order_id, "SHIPPED", tracking_number=f"AWB-{order_id[:8]}")
        update_order_status(order_id, "DELIVERED")
        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        if delivered_ago is not None:
            order.delivered_at = datetime.now(UTC) - delivered_ago
            repo.add(order)
        return order

    return _deliver


@pytest.fixture()
def delivered_order(add_product, place, deliver):
    """A delivered COD order: 2 x Tee at 500 and 1 x Cap at 300."""
    tee = add_product(name="Tee", price=500.0, stock=10)
    cap = add_product(name="Cap", price=300.0, stock=5)
    order = place([{"product_id": tee, "quantity": 2, "size": "M"}, (cap, 1)])
    return deliver(str(order.id), delivered_ago=timedelta(days=1))


@pytest.fixture()
def line_for():
    def _line_for(order, name):
        return next(item for item in order.items if item.name == name)

    return _line_for
