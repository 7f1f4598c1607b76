"""Return requests: eligibility, line resolution and persistence.

A return is accepted when the order belongs to the requester, was delivered,
is still inside the return window and has no other open return. Each line
names an order item; its quantity is capped at what was ordered and its
refund contribution is the item's price after the item discount.
"""

import json
from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.config import get_settings
from commerce.domain import commerce
from commerce.errors import ForbiddenError
from commerce.ordering.order import Order, OrderStatus
from commerce.pricing.evaluator import round_half_up
from commerce.returns.return_request import ReturnRequest
from commerce.sequence.counter import RETURN_SEQUENCE, next_document_number
from commerce.utils.locks import return_locks

logger = structlog.get_logger(__name__)


@commerce.command(part_of="ReturnRequest")
class RequestReturn:
    return_number = String(required=True, max_length=50)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of resolved return lines
    reason = String(required=True, max_length=500)
    description = Text()
    refund_amount = Float(required=True)


@commerce.command_handler(part_of=ReturnRequest)
class ReturnRequestHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        repo = current_domain.repository_for(ReturnRequest)
        if repo.open_for_order(command.order_id) is not None:
            raise ValidationError({"order_id": ["A return request for this order already exists"]})

        order = current_domain.repository_for(Order).get(command.order_id)
        request = ReturnRequest.open(
            return_number=command.return_number,
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=command.customer_id,
            items_data=json.loads(command.items),
            reason=command.reason,
            refund_amount=command.refund_amount,
            description=command.description,
        )
        repo.add(request)
        return str(request.id)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def return_window_closes_at(order: Order) -> datetime:
    delivered = order.delivered_at or order.updated_at
    return _as_utc(delivered) + timedelta(days=get_settings().return_window_days)


def _resolve_lines(order: Order, items: list[dict]) -> tuple[list[dict], float]:
    lines = []
    refund = 0.0
    for requested in items:
        item_id = str(requested.get("order_item_id") or "").strip()
        if not item_id:
            continue
        item = order.item(item_id)
        if item is None:
            raise ValidationError({"items": [f"Invalid order item: {item_id}"]})

        try:
            asked = int(requested.get("quantity") or 0)
        except (TypeError, ValueError):
            asked = 0
        quantity = min(asked or item.quantity, item.quantity)
        if quantity < 1:
            continue

        contribution = item.price * (1 - (item.discount or 0.0) / 100) * quantity
        refund += contribution
        lines.append(
            {
                "order_item_id": str(item.id),
                "product_id": str(item.product_id),
                "name": item.name,
                "quantity": quantity,
                "size": item.size,
                "stock_size": item.stock_size,
                "reason": requested.get("reason"),
                "refund": round(contribution, 2),
            }
        )
    return lines, refund


def request_return(
    customer_id: str,
    order_id: str,
    items: list[dict],
    reason: str,
    description: str | None = None,
) -> ReturnRequest:
    if not order_id or not items or not (reason or "").strip():
        raise ValidationError({"return": ["Order ID, at least one item, and reason are required"]})

    order = current_domain.repository_for(Order).get(order_id)
    if str(order.customer_id) != str(customer_id):
        raise ForbiddenError("You can only request returns for your own orders")
    if order.status != OrderStatus.DELIVERED.value:
        raise ValidationError({"status": ["Returns are only allowed for delivered orders"]})

    days = get_settings().return_window_days
    if datetime.now(UTC) > return_window_closes_at(order):
        raise ValidationError(
            {"order_id": [f"Return window has ended. Returns must be requested within {days} days of delivery"]}
        )

    lines, refund = _resolve_lines(order, items)
    if not lines:
        raise ValidationError({"items": ["Please select at least one item with quantity to return"]})

    with return_locks.hold(order_id):
        return_number = next_document_number("RET", RETURN_SEQUENCE)
        return_id = current_domain.process(
            RequestReturn(
                return_number=return_number,
                order_id=order_id,
                customer_id=str(customer_id),
                items=json.dumps(lines),
                reason=reason.strip(),
                description=description.strip() if description else None,
                refund_amount=float(round_half_up(refund)),
            ),
            asynchronous=False,
        )

    logger.info("Return requested", return_number=return_number, order_number=order.order_number)
    return current_domain.repository_for(ReturnRequest).get(return_id)
