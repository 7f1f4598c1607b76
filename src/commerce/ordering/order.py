"""Order aggregate: the system of record for a placed order.

The line items and shipping address are snapshots taken at checkout and never
re-read from the catalogue; totals are fixed at placement.

State Machine:
    PENDING → CONFIRMED → SHIPPED → DELIVERED → RETURNED
    PENDING → SHIPPED (courier assigned an AWB before confirmation)
    {PENDING, CONFIRMED, SHIPPED} → CANCELLED
    CANCELLED and RETURNED are terminal; DELIVERED only leads to RETURNED.

Every mutation bumps ``revision``. Callers that read an order and act on it
later pass the revision they saw; a mismatch means someone else got there
first and raises StaleStateError.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from commerce.domain import commerce
from commerce.errors import StaleStateError
from commerce.inventory.ledger import StockLine
from commerce.ordering.events import (
    ExternalShipmentLinked,
    OrderCancelled,
    OrderPaid,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
    TrackingNumberAssigned,
)

logger = structlog.get_logger(__name__)

DEFAULT_CARRIER = "Shiprocket"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class PaymentMethod(Enum):
    COD = "COD"
    ONLINE = "ONLINE"
    WALLET = "WALLET"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class AddressType(Enum):
    HOME = "HOME"
    WORK = "WORK"
    OTHER = "OTHER"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),  # terminal
    OrderStatus.RETURNED: set(),  # terminal
}

# Orders in these states no longer move forward on courier updates
_SHIPMENT_CLOSED_STATUSES = {OrderStatus.CANCELLED, OrderStatus.RETURNED}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@commerce.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address captured at checkout."""

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    email = String(required=True, max_length=254)
    phone = String(max_length=20)
    street = String(max_length=500)
    landmark = String(max_length=200)
    city = String(max_length=100)
    state = String(max_length=100)
    pincode = String(max_length=12)
    country = String(max_length=100, default="India")
    address_type = String(max_length=10, choices=AddressType, default=AddressType.HOME.value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@commerce.entity(part_of="Order")
class OrderItem:
    """A line as it was sold: product data copied, not referenced."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    sku = String(max_length=100, default="N/A")
    price = Float(required=True, min_value=0.0)  # unit price charged
    discount = Float(default=0.0)  # product discount % at time of sale
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=20)
    color = String(max_length=50)
    image = String(max_length=500)
    stock_size = String(max_length=20)  # size whose own count was reserved

    @property
    def total(self) -> float:
        return self.price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    subtotal = Float(default=0.0, min_value=0.0)
    shipping_charges = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    coupon_code = String(max_length=50)
    payment_method = String(max_length=10, choices=PaymentMethod, default=PaymentMethod.COD.value)
    payment_status = String(max_length=20, choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    external_order_id = String(max_length=100)
    external_shipment_id = String(max_length=100)
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    cancelled_reason = String(max_length=500)
    notes = Text()
    revision = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_follows_pricing_formula(self):
        if self.subtotal is None or self.total is None:
            return
        expected = max(0.0, self.subtotal - (self.discount or 0.0) + (self.shipping_charges or 0.0))
        if abs(expected - self.total) > 0.005:
            raise ValidationError({"total": [f"Total {self.total} does not match pricing ({expected})"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        customer_id: str,
        items_data: list[dict],
        shipping_address: dict,
        subtotal: float,
        shipping_charges: float,
        discount: float,
        total: float,
        payment_method: str,
        coupon_code: str | None = None,
        tax: float = 0.0,
    ):
        if not items_data:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            shipping_address=ShippingAddress(**shipping_address),
            subtotal=subtotal,
            shipping_charges=shipping_charges,
            discount=discount,
            tax=tax,
            total=total,
            coupon_code=coupon_code,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=customer_id,
                items=json.dumps(items_data),
                subtotal=subtotal,
                discount=discount,
                shipping_charges=shipping_charges,
                total=total,
                payment_method=payment_method,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def expect_revision(self, expected: int | None) -> None:
        if expected is not None and expected != self.revision:
            raise StaleStateError(
                f"Order {self.order_number} changed (revision {self.revision}, expected {expected})",
            )

    def _touch(self, now: datetime) -> None:
        self.revision = (self.revision or 0) + 1
        self.updated_at = now

    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def _move_to(self, target: OrderStatus, now: datetime) -> None:
        self._assert_can_transition(target)
        previous = self.status
        self.status = target.value
        self._touch(now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                from_status=previous,
                to_status=target.value,
                revision=self.revision,
                changed_at=now,
            )
        )

    def stock_lines(self) -> list[StockLine]:
        return [
            StockLine(product_id=str(i.product_id), quantity=i.quantity, size=i.stock_size) for i in self.items or []
        ]

    def total_quantity(self) -> int:
        return sum(i.quantity or 1 for i in self.items or [])

    def item(self, item_id: str) -> OrderItem | None:
        return next((i for i in self.items or [] if str(i.id) == str(item_id)), None)

    @property
    def is_paid_online(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value and self.payment_method == PaymentMethod.ONLINE.value

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def change_status(
        self,
        target: str,
        tracking_number: str | None = None,
        carrier: str | None = None,
        reason: str | None = None,
        notes: str | None = None,
    ) -> None:
        """Single entry point for admin status updates."""
        try:
            status = OrderStatus(target)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {target}"]}) from None

        if notes is not None:
            self.notes = notes

        if status == OrderStatus.CONFIRMED:
            self.confirm()
        elif status == OrderStatus.SHIPPED:
            self.ship(tracking_number=tracking_number, carrier=carrier)
        elif status == OrderStatus.DELIVERED:
            self.deliver()
        elif status == OrderStatus.CANCELLED:
            self.cancel(reason=reason)
        elif status == OrderStatus.RETURNED:
            self.mark_returned()
        else:
            self._assert_can_transition(status)

    def confirm(self) -> None:
        self._move_to(OrderStatus.CONFIRMED, datetime.now(UTC))

    def ship(self, tracking_number: str | None = None, carrier: str | None = None) -> None:
        now = datetime.now(UTC)
        self._move_to(OrderStatus.SHIPPED, now)
        self.shipped_at = now
        if tracking_number:
            self.tracking_number = tracking_number
        if carrier:
            self.carrier = carrier

    def deliver(self) -> None:
        now = datetime.now(UTC)
        self._move_to(OrderStatus.DELIVERED, now)
        self.delivered_at = now

    def cancel(self, reason: str | None = None) -> None:
        now = datetime.now(UTC)
        self._move_to(OrderStatus.CANCELLED, now)
        self.cancelled_at = now
        self.cancelled_reason = reason
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                payment_status=self.payment_status,
                cancelled_at=now,
            )
        )

    def mark_returned(self) -> None:
        self._move_to(OrderStatus.RETURNED, datetime.now(UTC))

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_cod_paid(self) -> None:
        if self.payment_method != PaymentMethod.COD.value:
            raise ValidationError({"payment_method": ["Only COD orders can be marked as paid"]})
        if self.status == OrderStatus.CANCELLED.value:
            raise ValidationError({"status": ["Cancelled orders cannot be marked as paid"]})
        if self.payment_status == PaymentStatus.PAID.value:
            return
        self._record_paid(PaymentMethod.COD)

    def record_online_payment(self) -> None:
        if self.payment_status == PaymentStatus.PAID.value:
            return
        self._record_paid(PaymentMethod.ONLINE)

    def _record_paid(self, method: PaymentMethod) -> None:
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_method = method.value
        self._touch(now)
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_method=method.value,
                amount=self.total,
                paid_at=now,
            )
        )

    def mark_refunded(self, partial: bool = False) -> None:
        now = datetime.now(UTC)
        self.payment_status = (PaymentStatus.PARTIALLY_REFUNDED if partial else PaymentStatus.REFUNDED).value
        self._touch(now)
        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_status=self.payment_status,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Shipment correlation
    # -------------------------------------------------------------------
    def link_external_shipment(self, external_order_id: str, external_shipment_id: str | None = None) -> None:
        if self.external_order_id and self.external_order_id != external_order_id:
            raise ValidationError({"external_order_id": ["Order is already linked to another courier order"]})
        self.external_order_id = external_order_id
        if external_shipment_id:
            self.external_shipment_id = external_shipment_id
        self._touch(datetime.now(UTC))
        self.raise_(
            ExternalShipmentLinked(
                order_id=str(self.id),
                external_order_id=external_order_id,
                external_shipment_id=external_shipment_id,
            )
        )

    def adopt_tracking(self, tracking_number: str, carrier: str | None = None) -> bool:
        """Record the courier's AWB. The first one adopted is kept.

        Moves a PENDING or CONFIRMED order to SHIPPED. Returns whether the
        AWB was newly adopted.
        """
        if not tracking_number:
            return False
        if self.tracking_number:
            if self.tracking_number != tracking_number:
                logger.warning(
                    "Ignoring conflicting AWB",
                    order_number=self.order_number,
                    kept=self.tracking_number,
                    ignored=tracking_number,
                )
            return False

        now = datetime.now(UTC)
        self.tracking_number = tracking_number
        self.carrier = carrier or self.carrier or DEFAULT_CARRIER
        current = OrderStatus(self.status)
        if current not in _SHIPMENT_CLOSED_STATUSES and OrderStatus.SHIPPED in _VALID_TRANSITIONS[current]:
            self._move_to(OrderStatus.SHIPPED, now)
            self.shipped_at = now
        else:
            self._touch(now)

        self.raise_(
            TrackingNumberAssigned(
                order_id=str(self.id),
                order_number=self.order_number,
                tracking_number=tracking_number,
                carrier=self.carrier,
                assigned_at=now,
            )
        )
        return True


@commerce.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        results = self._dao.query.filter(order_number=order_number).all().items
        return results[0] if results else None

    def for_customer(self, customer_id: str) -> list[Order]:
        orders = self._dao.query.filter(customer_id=customer_id).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def with_status(self, status: str | None = None) -> list[Order]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return sorted(query.all().items, key=lambda o: o.created_at, reverse=True)
