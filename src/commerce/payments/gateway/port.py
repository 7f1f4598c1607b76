"""Payment gateway port (abstract interface).

Defines the contract that gateway adapters implement, so the coordinator can
run against the FakeGateway in development and tests and the RazorpayGateway
in production without changes.

Amounts cross this boundary in minor units (paise).
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from commerce.errors import UpstreamError


class GatewayError(UpstreamError):
    """The gateway rejected a call or could not be reached."""


@dataclass(frozen=True)
class GatewayOrder:
    """A gateway-side order (payment intent)."""

    id: str
    amount: int
    currency: str
    receipt: str
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayRefund:
    """Result of a refund call."""

    id: str
    amount: int
    status: str
    raw: dict = field(default_factory=dict)


def compute_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """HMAC-SHA256 hex digest over ``order_id|payment_id``."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, supplied: str | None) -> bool:
    if not supplied:
        return False
    return hmac.compare_digest(expected.encode(), supplied.encode())


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    #: Public key handed to the browser checkout widget.
    key_id: str = ""

    @abstractmethod
    def create_order(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        """Create a gateway order for ``amount`` minor units."""
        ...

    @abstractmethod
    def refund(self, gateway_payment_id: str, amount: int, notes: dict | None = None) -> GatewayRefund:
        """Refund ``amount`` minor units of a captured payment."""
        ...

    @abstractmethod
    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        """Check the signature the checkout widget returned."""
        ...
