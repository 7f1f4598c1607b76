"""Payment domain events."""

from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce


@commerce.event(part_of="Payment")
class PaymentIntentCreated:
    """A gateway order was created for the payment."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway = String(required=True)
    gateway_order_id = String(required=True)
    amount = Float(required=True)
    created_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentSucceeded:
    """The payment was captured."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway = String(required=True)
    transaction_id = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentRefunded:
    """Money was returned against the payment."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    total_refunded = Float(required=True)
    refund_transaction_id = String()
    status = String(required=True)
    refunded_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentRefundFailed:
    """A gateway refund attempt failed and may be retried."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)
