"""Payment intent creation: command, handler and gateway call.

The gateway order is created first, outside any lock; only the short write
that records its id on the Payment runs under the order's lock.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from commerce.config import get_settings
from commerce.domain import commerce
from commerce.ordering.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from commerce.payments.gateway import get_gateway
from commerce.payments.payment import Gateway, Payment
from commerce.pricing.evaluator import round_half_up
from commerce.utils.locks import order_locks

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Payment")
class RecordPaymentIntent:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=100)
    amount = Float(required=True)


@commerce.command_handler(part_of=Payment)
class PaymentIntentHandler:
    @handle(RecordPaymentIntent)
    def record_intent(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        repo = current_domain.repository_for(Payment)
        payment = repo.for_order(str(order.id), gateway=Gateway.RAZORPAY.value) or Payment.open(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            amount=command.amount,
            method=PaymentMethod.ONLINE.value,
            gateway=Gateway.RAZORPAY.value,
        )
        payment.attach_intent(command.gateway_order_id, command.amount)
        repo.add(payment)
        return str(payment.id)


@dataclass(frozen=True)
class PaymentIntent:
    order_id: str
    order_number: str
    payment_id: str
    gateway_order_id: str
    amount: int  # minor units
    currency: str
    key_id: str


def create_payment_intent(order_id: str) -> PaymentIntent:
    order = current_domain.repository_for(Order).get(order_id)
    if order.payment_status == PaymentStatus.PAID.value:
        raise ValidationError({"order_id": ["Order is already paid"]})
    if order.status in (OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value):
        raise ValidationError({"order_id": [f"Cannot pay for an order in {order.status} state"]})

    gateway = get_gateway()
    currency = get_settings().gateway.currency
    amount = round_half_up(order.total * 100)
    gateway_order = gateway.create_order(
        amount=amount,
        currency=currency,
        receipt=order.order_number,
        notes={"order_id": str(order.id), "order_number": order.order_number},
    )

    with order_locks.hold(order_id):
        payment_id = current_domain.process(
            RecordPaymentIntent(order_id=order_id, gateway_order_id=gateway_order.id, amount=order.total),
            asynchronous=False,
        )

    logger.info("Payment intent created", order_number=order.order_number, gateway_order_id=gateway_order.id)
    return PaymentIntent(
        order_id=str(order.id),
        order_number=order.order_number,
        payment_id=payment_id,
        gateway_order_id=gateway_order.id,
        amount=gateway_order.amount,
        currency=gateway_order.currency,
        key_id=gateway.key_id,
    )
