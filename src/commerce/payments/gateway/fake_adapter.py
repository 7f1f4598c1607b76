"""Configurable fake payment gateway for development and testing.

No network calls. Signatures are real HMACs over a known secret, so tests can
produce valid and tampered signatures with ``sign()``.
"""

from uuid import uuid4

from commerce.payments.gateway.port import (
    GatewayError,
    GatewayOrder,
    GatewayRefund,
    PaymentGateway,
    compute_signature,
    signatures_match,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, secret: str = "fake_secret", key_id: str = "rzp_test_fake") -> None:
        self.secret = secret
        self.key_id = key_id
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def sign(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        return compute_signature(self.secret, gateway_order_id, gateway_payment_id)

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        self.calls.append(
            {"method": "create_order", "amount": amount, "currency": currency, "receipt": receipt, "notes": notes}
        )
        if not self.should_succeed:
            raise GatewayError(self.failure_reason, upstream={"error": {"description": self.failure_reason}})

        order_id = f"order_fake{uuid4().hex[:10]}"
        raw = {"id": order_id, "amount": amount, "currency": currency, "receipt": receipt, "status": "created"}
        return GatewayOrder(id=order_id, amount=amount, currency=currency, receipt=receipt, raw=raw)

    def refund(self, gateway_payment_id: str, amount: int, notes: dict | None = None) -> GatewayRefund:
        self.calls.append({"method": "refund", "payment_id": gateway_payment_id, "amount": amount, "notes": notes})
        if not self.should_succeed:
            raise GatewayError(self.failure_reason, upstream={"error": {"description": self.failure_reason}})

        refund_id = f"rfnd_fake{uuid4().hex[:10]}"
        raw = {"id": refund_id, "payment_id": gateway_payment_id, "amount": amount, "status": "processed"}
        return GatewayRefund(id=refund_id, amount=amount, status="processed", raw=raw)

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        expected = self.sign(gateway_order_id, gateway_payment_id)
        return signatures_match(expected, signature)

    def refund_calls(self) -> list[dict]:
        return [c for c in self.calls if c["method"] == "refund"]
