"""FastAPI routes for shipments: creation, sync, couriers and tracking."""

from fastapi import APIRouter

from commerce.api.schemas import CourierView, CreateShipmentRequest, OrderView, ShipmentResponse
from commerce.fulfillment.extraction import courier_id, courier_label
from commerce.fulfillment.synchronizer import FulfillmentSynchronizer

shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipment_router.post("/orders/{order_id}", response_model=ShipmentResponse)
def create_shipment(order_id: str, body: CreateShipmentRequest | None = None) -> ShipmentResponse:
    result = FulfillmentSynchronizer().create_shipment(order_id, body.courier_id if body else None)
    if result.awb_assigned:
        message = f"Shipment created with AWB {result.tracking_number}"
    else:
        message = "Courier order created. AWB not assigned yet; it will be picked up when the courier assigns one."
    return ShipmentResponse(
        awb_assigned=result.awb_assigned,
        external_order_id=result.external_order_id,
        tracking_number=result.tracking_number,
        carrier=result.carrier,
        message=message,
    )


@shipment_router.post("/orders/{order_id}/sync", response_model=OrderView)
def sync_tracking(order_id: str) -> OrderView:
    return OrderView.from_order(FulfillmentSynchronizer().sync_tracking(order_id))


@shipment_router.get("/orders/{order_id}/couriers", response_model=list[CourierView])
def get_couriers(order_id: str) -> list[CourierView]:
    couriers = FulfillmentSynchronizer().available_couriers(order_id)
    return [
        CourierView(
            id=courier_id(courier),
            name=courier_label(courier),
            rate=courier.get("rate") if isinstance(courier.get("rate"), (int, float)) else None,
            etd=str(courier["etd"]) if courier.get("etd") else None,
        )
        for courier in couriers
    ]


@shipment_router.get("/track/{awb}")
def track(awb: str) -> dict:
    return FulfillmentSynchronizer().track(awb)
