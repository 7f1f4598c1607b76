"""Fulfillment reacts to Ordering events.

A confirmed order that has not reached the courier yet gets its shipment
created on the background task runner. The handler only schedules the work:
courier calls never run inside the confirming request's transaction.
"""

import structlog
from protean.utils.mixins import handle

from commerce.domain import commerce
from commerce.fulfillment.synchronizer import create_shipment_in_background
from commerce.ordering.events import OrderStatusChanged
from commerce.ordering.order import Order, OrderStatus
from commerce.utils.tasks import get_task_runner

logger = structlog.get_logger(__name__)


@commerce.event_handler(part_of=Order)
class OrderEventHandler:
    """Reacts to order status changes."""

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        if event.to_status != OrderStatus.CONFIRMED.value:
            return

        logger.info("Scheduling shipment creation", order_number=event.order_number)
        get_task_runner().submit(
            "create_shipment",
            create_shipment_in_background,
            str(event.order_id),
        )
