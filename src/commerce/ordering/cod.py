"""Cash-on-delivery settlement: command and handler.

Marks a COD order as paid once the courier has collected the cash, and moves
its Payment record to SUCCESS (creating the record if checkout never did).
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.ordering.order import Order
from commerce.payments.payment import Gateway, Payment
from commerce.utils.locks import order_locks


@commerce.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)


@commerce.command_handler(part_of=Order)
class CashOnDeliveryHandler:
    @handle(MarkOrderPaid)
    def mark_paid(self, command):
        order_repo = current_domain.repository_for(Order)
        payment_repo = current_domain.repository_for(Payment)

        order = order_repo.get(command.order_id)
        order.mark_cod_paid()

        payment = payment_repo.for_order(str(order.id), gateway=Gateway.COD.value) or Payment.open(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            amount=order.total,
            method=order.payment_method,
            gateway=Gateway.COD.value,
        )
        payment.mark_succeeded()

        order_repo.add(order)
        payment_repo.add(payment)
        return str(payment.id)


def mark_order_paid(order_id: str) -> Order:
    with order_locks.hold(order_id):
        current_domain.process(MarkOrderPaid(order_id=order_id), asynchronous=False)
        return current_domain.repository_for(Order).get(order_id)
