"""Scriptable fake courier aggregator for development and testing.

Each call is recorded in ``calls``. By default the fake behaves like an
account without auto-assignment: creating an order returns ids but no AWB,
assigning without a courier yields nothing, and assigning with a courier
from ``couriers`` returns a fresh AWB. Tests override the scripted answers.
"""

from itertools import count

from commerce.fulfillment.courier.port import CourierError, CourierPort


class FakeCourier(CourierPort):
    """Configurable fake courier aggregator."""

    def __init__(self) -> None:
        self._ids = count(1001)
        self.calls: list[dict] = []
        self.create_response: dict | None = None
        self.auto_assign_response: dict | None = None
        self.assign_response: dict | None = None
        self.couriers: list[dict] = [
            {"id": 11, "courier_company_id": 11, "courier_name": "Delhivery Surface"},
            {"id": 24, "courier_company_id": 24, "courier_name": "Xpressbees"},
        ]
        self.orders: dict[str, dict] = {}
        self.tracking: dict[str, dict] = {}
        self.error: CourierError | None = None

    def configure(self, error: CourierError | None = None) -> None:
        """Make every call fail with ``error`` (or succeed again with None)."""
        self.error = error

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if self.error is not None:
            raise self.error

    def calls_to(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]

    def create_order(self, payload: dict) -> dict:
        self._record("create_order", payload=payload)
        if self.create_response is not None:
            return self.create_response
        order_id = next(self._ids)
        return {"order_id": order_id, "shipment_id": order_id + 5000, "status": "NEW"}

    def assign_awb(
        self,
        external_order_id: str,
        external_shipment_id: str | None = None,
        courier_id: str | None = None,
    ) -> dict | None:
        self._record(
            "assign_awb",
            external_order_id=external_order_id,
            external_shipment_id=external_shipment_id,
            courier_id=courier_id,
        )
        if courier_id is None:
            return self.auto_assign_response
        if self.assign_response is not None:
            return self.assign_response
        courier = next((c for c in self.couriers if str(c.get("id")) == str(courier_id)), {})
        return {
            "awb_assign_status": 1,
            "response": {
                "data": {
                    "awb_code": f"FAKEAWB{next(self._ids)}",
                    "courier_name": courier.get("courier_name", "Shiprocket"),
                    "courier_company_id": courier_id,
                }
            },
        }

    def serviceability(self, delivery_postcode: str, weight: float, cod: bool = True) -> dict:
        self._record("serviceability", delivery_postcode=delivery_postcode, weight=weight, cod=cod)
        return {"status": 200, "data": {"available_courier_companies": list(self.couriers)}}

    def get_order(self, reference: str) -> dict | None:
        self._record("get_order", reference=reference)
        return self.orders.get(str(reference))

    def track(self, awb: str) -> dict:
        self._record("track", awb=awb)
        if awb not in self.tracking:
            raise CourierError(
                f"No tracking found for AWB {awb}",
                upstream={"message": "AWB not found"},
                status_code=404,
            )
        return self.tracking[awb]
