"""Tests for the Razorpay adapter against a mocked HTTP session."""

from unittest.mock import MagicMock

import pytest
import requests
from pydantic import SecretStr

from commerce.config import GatewaySettings
from commerce.payments.gateway.port import GatewayError, compute_signature
from commerce.payments.gateway.razorpay_adapter import RazorpayGateway


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = body or {}
    return response


@pytest.fixture()
def settings():
    return GatewaySettings(key_id="rzp_test_key", key_secret=SecretStr("s3cret"), timeout=5.0)


@pytest.fixture()
def session():
    return MagicMock()


@pytest.fixture()
def razorpay(settings, session):
    return RazorpayGateway(settings, session=session)


class TestCreateOrder:
    def test_posts_amount_in_minor_units(self, razorpay, session):
        session.post.return_value = _response(
            body={"id": "order_abc", "amount": 129950, "currency": "INR", "receipt": "ORD1"}
        )

        order = razorpay.create_order(129950, "INR", "ORD1", notes={"order_id": "o-1"})

        assert order.id == "order_abc"
        assert order.amount == 129950
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.razorpay.com/v1/orders"
        assert kwargs["json"] == {
            "amount": 129950,
            "currency": "INR",
            "receipt": "ORD1",
            "payment_capture": 1,
            "notes": {"order_id": "o-1"},
        }
        assert kwargs["auth"] == ("rzp_test_key", "s3cret")
        assert kwargs["timeout"] == 5.0

    def test_error_description_is_surfaced(self, razorpay, session):
        session.post.return_value = _response(400, {"error": {"description": "amount must be at least 100"}})

        with pytest.raises(GatewayError) as exc:
            razorpay.create_order(50, "INR", "ORD1")

        assert str(exc.value) == "amount must be at least 100"
        assert exc.value.upstream_status == 400
        assert exc.value.upstream == {"error": {"description": "amount must be at least 100"}}

    def test_unreachable_gateway(self, razorpay, session):
        session.post.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(GatewayError) as exc:
            razorpay.create_order(100, "INR", "ORD1")
        assert "unreachable" in str(exc.value)

    def test_missing_credentials(self, session):
        gateway = RazorpayGateway(GatewaySettings(key_id="", key_secret=SecretStr("")), session=session)
        with pytest.raises(GatewayError):
            gateway.create_order(100, "INR", "ORD1")
        session.post.assert_not_called()


class TestRefund:
    def test_refund_call(self, razorpay, session):
        session.post.return_value = _response(body={"id": "rfnd_1", "amount": 5000, "status": "processed"})

        refund = razorpay.refund("pay_1", 5000, notes={"reason": "Order cancelled"})

        assert refund.id == "rfnd_1"
        assert session.post.call_args.args[0] == "https://api.razorpay.com/v1/payments/pay_1/refund"
        assert session.post.call_args.kwargs["json"] == {"amount": 5000, "notes": {"reason": "Order cancelled"}}


class TestSignature:
    def test_valid_signature(self, razorpay):
        signature = compute_signature("s3cret", "order_abc", "pay_1")
        assert razorpay.verify_signature("order_abc", "pay_1", signature)

    def test_signature_over_other_ids(self, razorpay):
        signature = compute_signature("s3cret", "order_abc", "pay_1")
        assert not razorpay.verify_signature("order_abc", "pay_2", signature)

    def test_empty_signature(self, razorpay):
        assert not razorpay.verify_signature("order_abc", "pay_1", "")
