"""Courier aggregator factory.

Provides get_courier() / set_courier() to swap implementations:
- FakeCourier for development and testing (default)
- ShiprocketCourier when COMMERCE_COURIER_ADAPTER=shiprocket
"""

from commerce.fulfillment.courier.port import CourierPort

_current_courier: CourierPort | None = None


def get_courier() -> CourierPort:
    """Return the current courier adapter, built from settings on first use."""
    global _current_courier
    if _current_courier is None:
        from commerce.config import get_settings

        settings = get_settings()
        if settings.courier_adapter == "fake":
            from commerce.fulfillment.courier.fake_adapter import FakeCourier

            _current_courier = FakeCourier()
        elif settings.courier_adapter == "shiprocket":
            from commerce.fulfillment.courier.shiprocket_adapter import ShiprocketCourier

            _current_courier = ShiprocketCourier(settings.courier)
        else:
            raise ValueError(f"Unknown courier adapter: {settings.courier_adapter}")
    return _current_courier


def set_courier(courier: CourierPort) -> None:
    """Override the active courier adapter (useful for tests)."""
    global _current_courier
    _current_courier = courier


def reset_courier() -> None:
    """Reset to default courier adapter."""
    global _current_courier
    _current_courier = None
