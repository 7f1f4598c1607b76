"""Return refund progress and completion.

Completing the refund is the one step that touches three aggregates: the
return closes, the order's Payment accumulates the refunded amount, and the
order itself moves to RETURNED with its payment status following the
Payment's (fully or partially refunded). It is applied once; repeating a
COMPLETED update is a no-op.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.ordering.order import Order, OrderStatus
from commerce.ordering.order import PaymentStatus as OrderPaymentStatus
from commerce.payments.payment import Payment, PaymentStatus
from commerce.returns.return_request import ReturnRequest
from commerce.utils.locks import order_locks, return_locks

logger = structlog.get_logger(__name__)

_CAPTURED = (PaymentStatus.SUCCESS.value, PaymentStatus.PARTIALLY_REFUNDED.value)
_ORDER_REFUNDABLE = (OrderPaymentStatus.PAID.value, OrderPaymentStatus.PARTIALLY_REFUNDED.value)


@commerce.command(part_of="ReturnRequest")
class UpdateReturnRefund:
    return_id = Identifier(required=True)
    refund_status = String(max_length=20)
    refund_amount = Float(min_value=0.0)
    refund_method = String(max_length=20)
    refund_transaction_id = String(max_length=100)


def _payment_for(order_id: str) -> Payment | None:
    payments = current_domain.repository_for(Payment).all_for_order(order_id)
    captured = [p for p in payments if p.status in _CAPTURED]
    return (captured or payments or [None])[0]


@commerce.command_handler(part_of=ReturnRequest)
class ReturnRefundHandler:
    @handle(UpdateReturnRefund)
    def update_refund(self, command):
        repo = current_domain.repository_for(ReturnRequest)
        request = repo.get(command.return_id)
        completed = request.update_refund(
            refund_status=command.refund_status,
            refund_amount=command.refund_amount,
            refund_method=command.refund_method,
            refund_transaction_id=command.refund_transaction_id,
        )
        repo.add(request)
        if not completed:
            return False

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(request.order_id)
        payment = _payment_for(str(order.id))

        partial = (request.refund_amount or 0.0) < (order.total or 0.0)
        if payment is not None:
            payment.add_refund(
                request.refund_amount or 0.0,
                refund_transaction_id=request.refund_transaction_id,
                method=request.refund_method,
            )
            current_domain.repository_for(Payment).add(payment)
            partial = payment.status == PaymentStatus.PARTIALLY_REFUNDED.value

        if order.status == OrderStatus.DELIVERED.value:
            order.mark_returned()
        if order.payment_status in _ORDER_REFUNDABLE:
            order.mark_refunded(partial=partial)
        order_repo.add(order)
        return True


def update_return_refund(
    return_id: str,
    refund_status: str | None = None,
    refund_amount: float | None = None,
    refund_method: str | None = None,
    refund_transaction_id: str | None = None,
) -> ReturnRequest:
    repo = current_domain.repository_for(ReturnRequest)
    order_id = str(repo.get(return_id).order_id)

    with return_locks.hold(return_id), order_locks.hold(order_id):
        completed = current_domain.process(
            UpdateReturnRefund(
                return_id=return_id,
                refund_status=refund_status,
                refund_amount=refund_amount,
                refund_method=refund_method,
                refund_transaction_id=refund_transaction_id,
            ),
            asynchronous=False,
        )

    request = repo.get(return_id)
    if completed:
        logger.info(
            "Return refund completed",
            return_number=request.return_number,
            amount=request.refund_amount,
            method=request.refund_method,
        )
    return request
