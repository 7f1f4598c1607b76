"""Return request domain events."""

from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce


@commerce.event(part_of="ReturnRequest")
class ReturnRequested:
    __version__ = 1

    return_id = Identifier(required=True)
    return_number = String(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    refund_amount = Float(required=True)
    requested_at = DateTime(required=True)


@commerce.event(part_of="ReturnRequest")
class ReturnApproved:
    __version__ = 1

    return_id = Identifier(required=True)
    return_number = String(required=True)
    order_id = Identifier(required=True)
    approved_at = DateTime(required=True)


@commerce.event(part_of="ReturnRequest")
class ReturnRejected:
    __version__ = 1

    return_id = Identifier(required=True)
    return_number = String(required=True)
    reason = String(required=True)
    rejected_at = DateTime(required=True)


@commerce.event(part_of="ReturnRequest")
class ReturnRefundCompleted:
    """Money for the return was paid back; the return is closed."""

    __version__ = 1

    return_id = Identifier(required=True)
    return_number = String(required=True)
    order_id = Identifier(required=True)
    refund_amount = Float(required=True)
    refund_method = String()
    completed_at = DateTime(required=True)
