"""Fulfillment synchronizer: keeps orders in step with the courier aggregator.

create_shipment(order):
    1. Create the aggregator order (once) and persist its ids immediately
    2. Adopt an AWB from the create answer if the account auto-assigns
    3. Otherwise ask for auto-assignment without a courier
    4. Otherwise pick a serviceable courier (preferred, else first) and assign
    5. Still nothing: schedule a best-effort re-fetch on the task runner

reconcile(order):
    Orders sent to the aggregator without an AWB are re-read (by external id,
    then by order number) and any AWB found is adopted. Never raises.

Adoption goes through the Order aggregate: the first AWB wins, and the order
moves to SHIPPED unless it is already closed. Network calls happen outside the
order lock; only the writes take it. Shipment creation for one order is
serialized so two callers cannot create two aggregator orders.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from commerce.config import get_settings
from commerce.fulfillment.courier import get_courier
from commerce.fulfillment.courier.port import CourierError, CourierPort
from commerce.fulfillment.extraction import (
    courier_id,
    courier_label,
    extract_awb,
    extract_couriers,
    extract_courier_name,
    extract_order_id,
    extract_shipment_id,
)
from commerce.fulfillment.payloads import build_order_payload, parcel_weight
from commerce.fulfillment.shipment import AdoptTrackingNumber, RecordExternalShipment
from commerce.ordering.order import Order, OrderStatus, PaymentMethod
from commerce.utils.locks import order_locks, shipment_locks
from commerce.utils.tasks import get_task_runner

logger = structlog.get_logger(__name__)

_NO_SHIPMENT_STATUSES = {OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value}


@dataclass(frozen=True)
class ShipmentResult:
    awb_assigned: bool
    external_order_id: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None


class FulfillmentSynchronizer:
    def __init__(self, courier: CourierPort | None = None) -> None:
        self.courier = courier or get_courier()
        self.settings = get_settings()

    @property
    def orders(self):
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def _record_external(self, order_id: str, external_order_id: str, external_shipment_id: str | None) -> None:
        with order_locks.hold(order_id):
            current_domain.process(
                RecordExternalShipment(
                    order_id=order_id,
                    external_order_id=external_order_id,
                    external_shipment_id=external_shipment_id,
                ),
                asynchronous=False,
            )

    def _adopt(self, order_id: str, awb: str, carrier: str | None) -> bool:
        with order_locks.hold(order_id):
            adopted = current_domain.process(
                AdoptTrackingNumber(order_id=order_id, tracking_number=awb, carrier=carrier),
                asynchronous=False,
            )
        if adopted:
            logger.info("Tracking number adopted", order_id=order_id, awb=awb, carrier=carrier)
        return bool(adopted)

    # -------------------------------------------------------------------
    # Courier selection
    # -------------------------------------------------------------------
    def available_couriers(self, order_id: str) -> list[dict]:
        order = self.orders.get(order_id)
        answer = self.courier.serviceability(
            order.shipping_address.pincode if order.shipping_address else "",
            parcel_weight(order.total_quantity()),
            cod=order.payment_method == PaymentMethod.COD.value,
        )
        return extract_couriers(answer)

    def _assign(
        self,
        order: Order,
        external_order_id: str,
        external_shipment_id: str | None,
        preferred_courier_id: str | None,
    ) -> tuple[str | None, str | None]:
        try:
            auto = self.courier.assign_awb(external_order_id, external_shipment_id)
        except CourierError as exc:
            logger.info(
                "Auto-assignment failed, choosing a courier",
                order_number=order.order_number,
                error=str(exc),
                upstream_status=exc.upstream_status,
            )
            auto = None
        awb = extract_awb(auto) if auto else None
        if awb:
            return awb, extract_courier_name(auto)

        # Couriers offered with the auto-assign answer come before serviceability.
        couriers = extract_couriers(auto) if auto else []
        if not couriers:
            couriers = self.available_couriers(str(order.id))
        if not couriers:
            logger.warning("No serviceable courier", order_number=order.order_number)
            return None, None

        choice = couriers[0]
        if preferred_courier_id is not None:
            preferred = next((c for c in couriers if courier_id(c) == str(preferred_courier_id)), None)
            if preferred is None:
                logger.info(
                    "Preferred courier not serviceable, using first available",
                    order_number=order.order_number,
                    preferred=preferred_courier_id,
                )
            choice = preferred or choice

        chosen_id = courier_id(choice)
        if chosen_id is None:
            return None, None
        assigned = self.courier.assign_awb(external_order_id, external_shipment_id, courier_id=chosen_id)
        awb = extract_awb(assigned) if assigned else None
        return awb, (extract_courier_name(assigned) if assigned else None) or courier_label(choice)

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def create_shipment(self, order_id: str, preferred_courier_id: str | None = None) -> ShipmentResult:
        with shipment_locks.hold(order_id):
            return self._create_shipment(order_id, preferred_courier_id)

    def _create_shipment(self, order_id: str, preferred_courier_id: str | None) -> ShipmentResult:
        order = self.orders.get(order_id)
        if order.status in _NO_SHIPMENT_STATUSES:
            raise ValidationError({"status": [f"Cannot create shipment for a {order.status} order"]})
        if order.tracking_number:
            return ShipmentResult(True, order.external_order_id, order.tracking_number, order.carrier)

        external_order_id = order.external_order_id
        external_shipment_id = order.external_shipment_id
        created = None

        if not external_order_id:
            created = self.courier.create_order(build_order_payload(order, self.settings.courier.pickup_location))
            external_order_id = extract_order_id(created)
            if not external_order_id:
                message = created.get("message") if isinstance(created, dict) else None
                raise CourierError(message or "Courier did not return an order id", upstream=created)
            external_shipment_id = extract_shipment_id(created)
            self._record_external(order_id, external_order_id, external_shipment_id)
            logger.info(
                "Courier order created",
                order_number=order.order_number,
                external_order_id=external_order_id,
                external_shipment_id=external_shipment_id,
            )
        elif not external_shipment_id:
            try:
                details = self.courier.get_order(external_order_id)
            except CourierError as exc:
                logger.warning("Courier order lookup failed", order_number=order.order_number, error=str(exc))
                details = None
            external_shipment_id = extract_shipment_id(details) if details else None
            if external_shipment_id:
                self._record_external(order_id, external_order_id, external_shipment_id)

        awb = extract_awb(created) if created else None
        carrier = extract_courier_name(created) if created else None
        if not awb:
            try:
                awb, carrier = self._assign(order, external_order_id, external_shipment_id, preferred_courier_id)
            except CourierError as exc:
                logger.warning(
                    "AWB assignment failed",
                    order_number=order.order_number,
                    error=str(exc),
                    upstream=exc.upstream,
                )
                awb, carrier = None, None

        if awb:
            self._adopt(order_id, awb, carrier)
            order = self.orders.get(order_id)
            return ShipmentResult(True, external_order_id, order.tracking_number, order.carrier)

        logger.info("No AWB yet, scheduling re-fetch", order_number=order.order_number)
        get_task_runner().submit(
            "refetch_tracking",
            refetch_tracking,
            order_id,
            delay=self.settings.tracking_refetch_delay,
        )
        return ShipmentResult(False, external_order_id)

    def reconcile(self, order_id: str) -> bool:
        """Adopt an AWB the aggregator assigned after the fact. Never raises."""
        try:
            order = self.orders.get(order_id)
            if order.tracking_number or not order.external_order_id:
                return False

            document = self.courier.get_order(order.external_order_id)
            awb = extract_awb(document) if document else None
            if not awb and order.order_number:
                document = self.courier.get_order(order.order_number)
                awb = extract_awb(document) if document else None
            if not awb:
                logger.debug("No AWB at courier yet", order_number=order.order_number)
                return False

            return self._adopt(order_id, awb, extract_courier_name(document))
        except (CourierError, ObjectNotFoundError, ValidationError) as exc:
            logger.warning("Tracking reconcile failed", order_id=order_id, error=str(exc))
            return False

    def track(self, awb: str) -> dict:
        return self.courier.track(awb)

    def sync_tracking(self, order_id: str) -> Order:
        self.orders.get(order_id)
        self.reconcile(order_id)
        return self.orders.get(order_id)


def refetch_tracking(order_id: str) -> bool:
    return FulfillmentSynchronizer().reconcile(order_id)


def create_shipment_in_background(order_id: str) -> ShipmentResult | None:
    """Shipment creation after confirmation; failures are logged for an admin retry."""
    try:
        return FulfillmentSynchronizer().create_shipment(order_id)
    except (CourierError, ValidationError, ObjectNotFoundError) as exc:
        logger.warning("Automatic shipment creation failed", order_id=order_id, error=str(exc))
        return None
