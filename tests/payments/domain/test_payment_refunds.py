"""Tests for Payment capture and the refund sub-state."""

import pytest
from protean.exceptions import ValidationError

from commerce.payments.events import PaymentRefunded, PaymentRefundFailed, PaymentSucceeded
from commerce.payments.payment import Gateway, Payment, PaymentStatus, RefundStatus


def _captured(amount=1000.0):
    payment = Payment.open(order_id="order-1", amount=amount, method="ONLINE")
    payment.attach_intent("order_fake1", amount)
    payment.mark_succeeded("pay_1")
    return payment


class TestCapture:
    def test_online_payments_go_through_the_gateway(self):
        payment = Payment.open(order_id="order-1", amount=500.0, method="ONLINE")
        assert payment.gateway == Gateway.RAZORPAY.value
        assert payment.status == PaymentStatus.PENDING.value

    def test_cod_payments(self):
        assert Payment.open(order_id="order-1", amount=500.0, method="COD").gateway == Gateway.COD.value

    def test_success_is_recorded(self):
        payment = _captured()
        assert payment.status == PaymentStatus.SUCCESS.value
        assert payment.transaction_id == "pay_1"
        assert payment.paid_at is not None
        assert any(isinstance(e, PaymentSucceeded) for e in payment._events)

    def test_repeat_capture_is_a_no_op(self):
        payment = _captured()
        payment._events.clear()
        payment.mark_succeeded("pay_1")
        assert payment._events == []

    def test_no_new_intent_after_capture(self):
        with pytest.raises(ValidationError):
            _captured().attach_intent("order_fake2", 1000.0)


class TestGatewayRefund:
    def test_claim_then_settle(self):
        payment = _captured()
        payment.begin_refund()
        assert payment.refund_in_flight
        payment.complete_gateway_refund(1000.0, "rfnd_1")
        assert payment.status == PaymentStatus.REFUNDED.value
        assert payment.refund_status == RefundStatus.COMPLETED.value
        assert payment.refund_transaction_id == "rfnd_1"
        assert payment.refund_settled

    def test_second_claim_while_in_flight_fails(self):
        payment = _captured()
        payment.begin_refund()
        with pytest.raises(ValidationError) as exc:
            payment.begin_refund()
        assert "already in progress" in str(exc.value)

    def test_claim_after_settlement_fails(self):
        payment = _captured()
        payment.begin_refund()
        payment.complete_gateway_refund(1000.0, "rfnd_1")
        with pytest.raises(ValidationError):
            payment.begin_refund()

    def test_failed_refund_can_be_retried(self):
        payment = _captured()
        payment.begin_refund()
        payment.fail_refund("Gateway unavailable")
        assert payment.refund_status == RefundStatus.FAILED.value
        assert payment.failure_reason == "Gateway unavailable"
        assert any(isinstance(e, PaymentRefundFailed) for e in payment._events)

        payment.begin_refund()
        assert payment.refund_status == RefundStatus.INITIATED.value


class TestAccumulatedRefunds:
    def test_partial_then_full(self):
        payment = _captured(amount=1000.0)
        payment.add_refund(400.0, "rfnd_1", "ORIGINAL")
        assert payment.status == PaymentStatus.PARTIALLY_REFUNDED.value
        assert payment.refund_amount == 400.0

        payment.add_refund(600.0, "rfnd_2")
        assert payment.status == PaymentStatus.REFUNDED.value
        assert payment.refund_amount == 1000.0
        assert payment.refund_transaction_id == "rfnd_2"
        assert sum(isinstance(e, PaymentRefunded) for e in payment._events) == 2

    def test_captured_payment_cannot_be_recaptured_after_refund(self):
        payment = _captured()
        payment.add_refund(1000.0)
        with pytest.raises(ValidationError):
            payment.mark_succeeded("pay_2")


class TestAdminUpdate:
    def test_completed_marks_refunded(self):
        payment = _captured()
        payment.update_refund(refund_status="COMPLETED", refund_amount=1000.0, refund_method="WALLET")
        assert payment.status == PaymentStatus.REFUNDED.value
        assert payment.refund_method == "WALLET"
        assert payment.refunded_at is not None

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError):
            _captured().update_refund(refund_status="DONE")
