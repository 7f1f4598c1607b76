"""Order domain events: immutable facts about order state changes."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderPlaced:
    """A priced order was persisted with its stock reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of line snapshots
    subtotal = Float(required=True)
    discount = Float(required=True)
    shipping_charges = Float(required=True)
    total = Float(required=True)
    payment_method = String(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    revision = Integer(required=True)
    changed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; its stock is due back."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String()
    payment_status = String(required=True)
    cancelled_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderPaid:
    """Payment for the order was captured."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_method = String(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderRefunded:
    """Money for the order was returned, in full or in part."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_status = String(required=True)
    refunded_at = DateTime(required=True)


@commerce.event(part_of="Order")
class ExternalShipmentLinked:
    """The courier aggregator accepted the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    external_order_id = String(required=True)
    external_shipment_id = String()


@commerce.event(part_of="Order")
class TrackingNumberAssigned:
    """An AWB was adopted for the order's shipment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    tracking_number = String(required=True)
    carrier = String(required=True)
    assigned_at = DateTime(required=True)
