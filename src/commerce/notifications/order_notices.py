"""Order notifications: the admin new-order notice and the customer confirmation.

COD orders are announced at placement; online orders only once their payment
is verified, so an abandoned checkout never produces a confirmation. Delivery
problems are logged and never fail the order operation that triggered them.
"""

import structlog

from commerce.config import get_settings
from commerce.notifications import get_mailer

logger = structlog.get_logger(__name__)


def _summary(order) -> str:
    lines = [f"Order {order.order_number}"]
    for item in order.items or []:
        size = f" ({item.size})" if item.size else ""
        lines.append(f"  {item.quantity} x {item.name}{size} @ {item.price:g}")
    lines.append(f"Subtotal: {order.subtotal:g}")
    if order.discount:
        lines.append(f"Discount: -{order.discount:g}")
    lines.append(f"Shipping: {order.shipping_charges:g}")
    lines.append(f"Total: {order.total:g}")
    lines.append(f"Payment: {order.payment_method} ({order.payment_status})")
    return "\n".join(lines)


def announce_order(order) -> None:
    """Send the admin notice and the customer confirmation for ``order``."""
    mailer = get_mailer()
    summary = _summary(order)
    customer_email = order.shipping_address.email if order.shipping_address else None

    messages = [(get_settings().admin_email, f"New order {order.order_number}", summary)]
    if customer_email:
        messages.append((customer_email, f"Your order {order.order_number} is confirmed", summary))

    for to, subject, body in messages:
        try:
            result = mailer.send(to=to, subject=subject, body=body)
        except Exception:  # noqa: BLE001
            logger.exception("Order email failed", order_number=order.order_number, to=to)
            continue
        if result.get("status") != "sent":
            logger.warning(
                "Order email not sent",
                order_number=order.order_number,
                to=to,
                error=result.get("error"),
            )
