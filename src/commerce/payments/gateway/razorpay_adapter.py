"""Razorpay payment gateway adapter.

Talks to the Razorpay REST API with basic auth (key id / key secret). Every
call carries an explicit timeout; transport errors and non-2xx answers are
raised as GatewayError with the upstream body attached.
"""

import requests
import structlog

from commerce.config import GatewaySettings
from commerce.payments.gateway.port import (
    GatewayError,
    GatewayOrder,
    GatewayRefund,
    PaymentGateway,
    compute_signature,
    signatures_match,
)

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    """Production gateway backed by the Razorpay Orders and Refunds APIs."""

    def __init__(self, settings: GatewaySettings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.key_id = settings.key_id
        self._secret = settings.key_secret.get_secret_value()
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.settings.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = self.session.post(
                url,
                json=payload,
                auth=(self.key_id, self._secret),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Gateway unreachable", path=path, error=str(exc))
            raise GatewayError(f"Payment gateway unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if not response.ok:
            description = body.get("error", {}).get("description") if isinstance(body, dict) else None
            logger.error("Gateway call failed", path=path, status=response.status_code, body=body)
            raise GatewayError(
                description or f"Payment gateway returned {response.status_code}",
                upstream=body,
                status_code=response.status_code,
            )
        return body

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        if not self.key_id or not self._secret:
            raise GatewayError("Payment gateway is not configured")
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        if notes:
            payload["notes"] = notes
        body = self._post("orders", payload)
        return GatewayOrder(
            id=body["id"],
            amount=body.get("amount", amount),
            currency=body.get("currency", currency),
            receipt=body.get("receipt", receipt),
            raw=body,
        )

    def refund(self, gateway_payment_id: str, amount: int, notes: dict | None = None) -> GatewayRefund:
        payload = {"amount": amount}
        if notes:
            payload["notes"] = notes
        body = self._post(f"payments/{gateway_payment_id}/refund", payload)
        return GatewayRefund(
            id=body.get("id", ""),
            amount=body.get("amount", amount),
            status=body.get("status", "processed"),
            raw=body,
        )

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        expected = compute_signature(self._secret, gateway_order_id, gateway_payment_id)
        return signatures_match(expected, signature)
