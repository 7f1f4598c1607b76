"""Automatic refunds for cancelled online orders.

Claim, call, settle:
    1. Under the order's lock, claim the refund on the Payment (INITIATED).
       A second caller finds the claim and does nothing.
    2. Call the gateway outside the lock.
    3. Under the lock again, settle: Payment REFUNDED + order REFUNDED, or
       Payment refund FAILED so a later call can retry.

``refund_order`` never raises: the cancellation that triggered it has
already committed, and a failed refund is recorded on the Payment for an
admin to follow up.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.ordering.order import Order, PaymentStatus
from commerce.payments.gateway import get_gateway
from commerce.payments.gateway.port import GatewayError
from commerce.payments.payment import Gateway, Payment
from commerce.pricing.evaluator import round_half_up
from commerce.utils.locks import order_locks

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Payment")
class ClaimRefund:
    payment_id = Identifier(required=True)


@commerce.command(part_of="Payment")
class SettleGatewayRefund:
    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    refund_transaction_id = String(max_length=100)


@commerce.command(part_of="Payment")
class RecordRefundFailure:
    payment_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@commerce.command_handler(part_of=Payment)
class RefundHandler:
    @handle(ClaimRefund)
    def claim(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.begin_refund()
        repo.add(payment)

    @handle(SettleGatewayRefund)
    def settle(self, command):
        payment_repo = current_domain.repository_for(Payment)
        order_repo = current_domain.repository_for(Order)

        payment = payment_repo.get(command.payment_id)
        payment.complete_gateway_refund(command.amount, command.refund_transaction_id)
        order = order_repo.get(command.order_id)
        order.mark_refunded()

        payment_repo.add(payment)
        order_repo.add(order)

    @handle(RecordRefundFailure)
    def record_failure(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.fail_refund(command.reason)
        repo.add(payment)


def _claim(order_id: str) -> Payment | None:
    """Return the claimed Payment, or None when there is nothing to refund."""
    order = current_domain.repository_for(Order).get(order_id)
    if order.payment_status == PaymentStatus.REFUNDED.value:
        logger.info("Order already refunded", order_number=order.order_number)
        return None
    if not order.is_paid_online:
        logger.info("Order was not paid online, nothing to refund", order_number=order.order_number)
        return None

    payment = current_domain.repository_for(Payment).for_order(order_id, gateway=Gateway.RAZORPAY.value)
    if payment is None or not payment.transaction_id:
        logger.warning("No captured gateway payment to refund", order_number=order.order_number)
        return None
    if payment.refund_settled or payment.refund_in_flight:
        logger.info("Refund already settled or in progress", order_number=order.order_number)
        return None

    current_domain.process(ClaimRefund(payment_id=str(payment.id)), asynchronous=False)
    return payment


def refund_order(order_id: str) -> bool:
    """Refund a cancelled online order in full. Returns whether money moved."""
    try:
        with order_locks.hold(order_id):
            payment = _claim(order_id)
    except (ObjectNotFoundError, ValidationError) as exc:
        logger.warning("Refund not started", order_id=order_id, error=str(exc))
        return False
    if payment is None:
        return False

    payment_id = str(payment.id)
    amount = payment.amount or 0.0
    try:
        result = get_gateway().refund(
            payment.transaction_id,
            amount=round_half_up(amount * 100),
            notes={"order_id": order_id, "reason": "Order cancelled"},
        )
    except GatewayError as exc:
        logger.error("Gateway refund failed", order_id=order_id, payment_id=payment_id, error=str(exc))
        with order_locks.hold(order_id):
            current_domain.process(
                RecordRefundFailure(payment_id=payment_id, reason=str(exc) or "Gateway refund failed"),
                asynchronous=False,
            )
        return False

    with order_locks.hold(order_id):
        current_domain.process(
            SettleGatewayRefund(
                order_id=order_id,
                payment_id=payment_id,
                amount=amount,
                refund_transaction_id=result.id,
            ),
            asynchronous=False,
        )
    logger.info("Order refunded", order_id=order_id, refund_id=result.id, amount=amount)
    return True
