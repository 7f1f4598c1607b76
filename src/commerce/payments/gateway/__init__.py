"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- RazorpayGateway when COMMERCE_GATEWAY_ADAPTER=razorpay
"""

from commerce.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        from commerce.config import get_settings

        settings = get_settings()
        if settings.gateway_adapter == "fake":
            from commerce.payments.gateway.fake_adapter import FakeGateway

            _current_gateway = FakeGateway()
        elif settings.gateway_adapter == "razorpay":
            from commerce.payments.gateway.razorpay_adapter import RazorpayGateway

            _current_gateway = RazorpayGateway(settings.gateway)
        else:
            raise ValueError(f"Unknown gateway adapter: {settings.gateway_adapter}")
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
