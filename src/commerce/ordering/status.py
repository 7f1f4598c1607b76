"""Order status updates: command, handler and the side effects around them.

The transition itself is a single command applied under the order's lock, so
two admins racing on one order serialize and the second sees the first's
result (an illegal transition, or a stale revision if it passed one).

Side effects, in order:
    CANCELLED  release every line's stock (under the same lock, once),
               then refund if the order was paid online (never raises)
    CONFIRMED  OrderStatusChanged reaches the fulfillment event handler,
               which hands shipment creation to the background task runner
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.inventory.ledger import get_ledger
from commerce.ordering.order import Order, OrderStatus
from commerce.utils.locks import order_locks

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    tracking_number = String(max_length=100)
    shipping_provider = String(max_length=100)
    cancelled_reason = String(max_length=500)
    notes = Text()
    expected_revision = Integer()


@commerce.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.expect_revision(command.expected_revision)
        order.change_status(
            command.status,
            tracking_number=command.tracking_number,
            carrier=command.shipping_provider,
            reason=command.cancelled_reason,
            notes=command.notes,
        )
        repo.add(order)


def update_order_status(
    order_id: str,
    status: str,
    tracking_number: str | None = None,
    shipping_provider: str | None = None,
    cancelled_reason: str | None = None,
    notes: str | None = None,
    expected_revision: int | None = None,
) -> Order:
    repo = current_domain.repository_for(Order)

    with order_locks.hold(order_id):
        previous = repo.get(order_id).status
        current_domain.process(
            UpdateOrderStatus(
                order_id=order_id,
                status=status,
                tracking_number=tracking_number,
                shipping_provider=shipping_provider,
                cancelled_reason=cancelled_reason,
                notes=notes,
                expected_revision=expected_revision,
            ),
            asynchronous=False,
        )
        order = repo.get(order_id)
        cancelled_now = order.status == OrderStatus.CANCELLED.value and previous != OrderStatus.CANCELLED.value
        if cancelled_now:
            get_ledger().release_all(order.stock_lines())

    logger.info("Order status updated", order_number=order.order_number, from_status=previous, to_status=status)

    if cancelled_now and order.is_paid_online:
        from commerce.payments.refund import refund_order

        refund_order(order_id)
        order = repo.get(order_id)

    return order
