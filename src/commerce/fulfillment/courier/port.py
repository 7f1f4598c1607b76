"""Courier aggregator port (abstract interface).

Responses are returned as the aggregator's own documents; the synchronizer
reads ids out of them with ``commerce.fulfillment.extraction``.
"""

from abc import ABC, abstractmethod

from commerce.errors import UpstreamError


class CourierError(UpstreamError):
    """The courier aggregator rejected a call or could not be reached."""

    @property
    def not_found(self) -> bool:
        return self.upstream_status == 404


class CourierPort(ABC):
    """Abstract courier aggregator interface."""

    @abstractmethod
    def create_order(self, payload: dict) -> dict:
        """Create an aggregator order from a shipment payload."""
        ...

    @abstractmethod
    def assign_awb(
        self,
        external_order_id: str,
        external_shipment_id: str | None = None,
        courier_id: str | None = None,
    ) -> dict | None:
        """Assign an AWB. Without a courier, None means no auto-assignment."""
        ...

    @abstractmethod
    def serviceability(self, delivery_postcode: str, weight: float, cod: bool = True) -> dict:
        """Couriers serving the pickup → delivery lane for a parcel weight."""
        ...

    @abstractmethod
    def get_order(self, reference: str) -> dict | None:
        """Fetch an aggregator order by its id or our order number."""
        ...

    @abstractmethod
    def track(self, awb: str) -> dict:
        """Tracking document for an AWB. Raises CourierError (404) when unknown."""
        ...
