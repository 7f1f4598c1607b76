"""Order read side: single order, listings and dashboard stats.

A customer's listing is the point where couriers that assigned an AWB after
the fact get noticed: orders sent to the aggregator without a tracking number
are reconciled before the list is returned.
"""

from collections import Counter
from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

from commerce.ordering.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)


def get_order(order_id: str) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def list_orders(status: str | None = None) -> list[Order]:
    return current_domain.repository_for(Order).with_status(status)


def list_customer_orders(customer_id: str) -> list[Order]:
    from commerce.fulfillment.synchronizer import FulfillmentSynchronizer

    repo = current_domain.repository_for(Order)
    orders = repo.for_customer(customer_id)
    awaiting = [o for o in orders if o.external_order_id and not o.tracking_number]
    if not awaiting:
        return orders

    synchronizer = FulfillmentSynchronizer()
    updated = [o for o in awaiting if synchronizer.reconcile(str(o.id))]
    if updated:
        logger.info("Tracking reconciled on listing", customer_id=customer_id, orders=len(updated))
        orders = repo.for_customer(customer_id)
    return orders


@dataclass
class OrderStats:
    total_orders: int = 0
    revenue: float = 0.0
    by_status: dict[str, int] = field(default_factory=dict)
    by_payment_method: dict[str, int] = field(default_factory=dict)


def order_stats() -> OrderStats:
    orders = current_domain.repository_for(Order).with_status()
    revenue = sum(o.total or 0.0 for o in orders if o.payment_status == PaymentStatus.PAID.value)
    return OrderStats(
        total_orders=len(orders),
        revenue=round(revenue, 2),
        by_status=dict(Counter(o.status for o in orders)),
        by_payment_method=dict(Counter(o.payment_method for o in orders)),
    )
