"""Application tests for refunding cancelled online orders through the gateway."""

from protean import current_domain

from commerce.catalogue.product import Product
from commerce.ordering.order import Order, OrderStatus, PaymentStatus
from commerce.ordering.status import update_order_status
from commerce.payments.payment import Payment, RefundStatus
from commerce.payments.payment import PaymentStatus as PaymentRecordStatus
from commerce.payments.refund import refund_order


def _payment(order_id):
    return current_domain.repository_for(Payment).for_order(order_id, gateway="RAZORPAY")


class TestCancellationRefund:
    def test_cancelling_a_paid_order_refunds_it(self, paid_online_order, gateway):
        order_id, product_id = paid_online_order(price=1000.0, quantity=2, stock=5)

        cancelled = update_order_status(order_id, "CANCELLED", cancelled_reason="Out of stock at warehouse")

        assert cancelled.status == OrderStatus.CANCELLED.value
        assert cancelled.payment_status == PaymentStatus.REFUNDED.value
        [call] = gateway.refund_calls()
        assert call["payment_id"] == "pay_test_001"
        assert call["amount"] == round(cancelled.total * 100)

        payment = _payment(order_id)
        assert payment.status == PaymentRecordStatus.REFUNDED.value
        assert payment.refund_status == RefundStatus.COMPLETED.value
        assert payment.refund_transaction_id.startswith("rfnd_fake")
        assert current_domain.repository_for(Product).get(product_id).stock_quantity == 5

    def test_refund_is_never_repeated(self, paid_online_order, gateway):
        order_id, _ = paid_online_order()
        update_order_status(order_id, "CANCELLED")

        assert refund_order(order_id) is False
        assert refund_order(order_id) is False
        assert len(gateway.refund_calls()) == 1

    def test_gateway_failure_keeps_the_cancellation(self, paid_online_order, gateway):
        order_id, _ = paid_online_order()
        gateway.configure(should_succeed=False, failure_reason="Refund window closed")

        cancelled = update_order_status(order_id, "CANCELLED")

        assert cancelled.status == OrderStatus.CANCELLED.value
        assert cancelled.payment_status == PaymentStatus.PAID.value
        payment = _payment(order_id)
        assert payment.refund_status == RefundStatus.FAILED.value
        assert payment.failure_reason == "Refund window closed"

    def test_failed_refund_can_be_retried(self, paid_online_order, gateway):
        order_id, _ = paid_online_order()
        gateway.configure(should_succeed=False)
        update_order_status(order_id, "CANCELLED")

        gateway.configure(should_succeed=True)
        assert refund_order(order_id) is True
        assert current_domain.repository_for(Order).get(order_id).payment_status == PaymentStatus.REFUNDED.value
        assert len(gateway.refund_calls()) == 2

    def test_cod_orders_have_nothing_to_refund(self, add_product, place, gateway):
        product_id = add_product(name="Tee", price=500.0, stock=5)
        order = place([(product_id, 1)])
        update_order_status(str(order.id), "CANCELLED")

        assert refund_order(str(order.id)) is False
        assert gateway.refund_calls() == []

    def test_unknown_order(self):
        assert refund_order("missing-order") is False
