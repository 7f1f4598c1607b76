"""Payment verification: the only place online orders become PAID.

The checkout widget returns (gateway order id, gateway payment id, signature).
The signature is an HMAC of the first two under our secret; anything that
does not match is rejected with no further detail. On a match the order is
marked PAID/ONLINE, the Payment SUCCESS, and the order notifications go out.

A capture that lands after the order was cancelled is recorded and then
refunded straight away; no confirmation is sent for it.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.notifications.order_notices import announce_order
from commerce.ordering.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from commerce.payments.gateway import get_gateway
from commerce.payments.payment import Gateway, Payment
from commerce.payments.refund import refund_order
from commerce.utils.locks import order_locks

logger = structlog.get_logger(__name__)

_CLOSED_STATUSES = {OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value}


@commerce.command(part_of="Payment")
class ConfirmOnlinePayment:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=100)
    gateway_payment_id = String(required=True, max_length=100)


@commerce.command_handler(part_of=Payment)
class PaymentVerificationHandler:
    @handle(ConfirmOnlinePayment)
    def confirm(self, command):
        order_repo = current_domain.repository_for(Order)
        payment_repo = current_domain.repository_for(Payment)

        order = order_repo.get(command.order_id)
        payment = payment_repo.for_order(str(order.id), gateway=Gateway.RAZORPAY.value)

        if payment is not None and payment.gateway_order_id and payment.gateway_order_id != command.gateway_order_id:
            raise ValidationError({"gateway_order_id": ["Payment does not belong to this order"]})
        if order.payment_status == PaymentStatus.PAID.value and (
            payment is None or payment.transaction_id != command.gateway_payment_id
        ):
            raise ValidationError({"order_id": ["Order is already paid"]})

        if payment is None:
            payment = Payment.open(
                order_id=str(order.id),
                customer_id=str(order.customer_id),
                amount=order.total,
                method=PaymentMethod.ONLINE.value,
                gateway=Gateway.RAZORPAY.value,
            )
            payment.gateway_order_id = command.gateway_order_id

        payment.mark_succeeded(transaction_id=command.gateway_payment_id)
        order.record_online_payment()

        payment_repo.add(payment)
        order_repo.add(order)
        return str(payment.id)


@dataclass(frozen=True)
class VerifiedPayment:
    order_id: str
    payment_id: str
    newly_paid: bool


def verify_payment(
    order_id: str | None,
    gateway_order_id: str | None,
    gateway_payment_id: str | None,
    signature: str | None,
) -> VerifiedPayment:
    missing = [
        name
        for name, value in (
            ("order_id", order_id),
            ("gateway_order_id", gateway_order_id),
            ("gateway_payment_id", gateway_payment_id),
            ("signature", signature),
        )
        if not value
    ]
    if missing:
        raise ValidationError({name: ["This field is required"] for name in missing})

    if not get_gateway().verify_signature(gateway_order_id, gateway_payment_id, signature):
        logger.warning("Payment signature mismatch", order_id=order_id, gateway_order_id=gateway_order_id)
        raise ValidationError({"signature": ["Invalid payment signature"]})

    with order_locks.hold(order_id):
        order_repo = current_domain.repository_for(Order)
        newly_paid = order_repo.get(order_id).payment_status != PaymentStatus.PAID.value
        payment_id = current_domain.process(
            ConfirmOnlinePayment(
                order_id=order_id,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
            ),
            asynchronous=False,
        )
        order = order_repo.get(order_id)

    if newly_paid and order.status in _CLOSED_STATUSES:
        logger.warning(
            "Payment captured for a closed order, refunding",
            order_number=order.order_number,
            status=order.status,
            payment_id=payment_id,
        )
        refund_order(order_id)
        order = order_repo.get(order_id)
    elif newly_paid:
        logger.info("Online payment verified", order_number=order.order_number, payment_id=payment_id)
        announce_order(order)

    return VerifiedPayment(order_id=str(order.id), payment_id=payment_id, newly_paid=newly_paid)
