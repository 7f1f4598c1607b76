"""Checkout: turns a cart into a placed order.

Flow:
    1. Validate the request (items, quantities, address email, method)
    2. Resolve live products and price the cart (coupon failures are soft)
    3. Reserve stock for every line, all or nothing
    4. Allocate an order number from the persisted sequence
    5. PlaceOrder: persist the Order, its PENDING Payment, the customer's
       running totals and the coupon's usage in one unit of work
    6. COD orders are announced immediately; online orders wait for payment

If anything after step 3 fails, the reserved stock is released before the
error propagates, so a persisted order always has its stock and a failed
checkout never keeps any.
"""

import json
from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.catalogue.product import Product
from commerce.customer.customer import Customer
from commerce.domain import commerce
from commerce.inventory.ledger import StockLine, get_ledger
from commerce.notifications.order_notices import announce_order
from commerce.ordering.order import AddressType, Order, PaymentMethod
from commerce.payments.payment import Payment
from commerce.pricing.coupon import Coupon
from commerce.pricing.evaluator import CartLine, CouponOutcome, price_cart
from commerce.pricing.store_settings import get_store_settings
from commerce.sequence.counter import ORDER_SEQUENCE, next_document_number

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class PlaceOrder:
    order_number = String(required=True, max_length=50)
    customer_id = Identifier()
    items = Text(required=True)  # JSON: list of priced line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    subtotal = Float(required=True)
    shipping_charges = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(required=True)
    payment_method = String(required=True, max_length=10)
    coupon_code = String(max_length=50)
    currency = String(max_length=3, default="INR")


@commerce.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items)
        address = json.loads(command.shipping_address)

        customer_repo = current_domain.repository_for(Customer)
        if command.customer_id:
            customer = customer_repo.get(command.customer_id)
        else:
            customer = customer_repo.find_by_email(address["email"]) or Customer.register_guest(
                first_name=address.get("first_name"),
                last_name=address.get("last_name"),
                email=address["email"],
                phone=address.get("phone"),
            )

        order = Order.place(
            order_number=command.order_number,
            customer_id=str(customer.id),
            items_data=items_data,
            shipping_address=address,
            subtotal=command.subtotal,
            shipping_charges=command.shipping_charges or 0.0,
            discount=command.discount or 0.0,
            total=command.total,
            payment_method=command.payment_method,
            coupon_code=command.coupon_code,
        )
        payment = Payment.open(
            order_id=str(order.id),
            customer_id=str(customer.id),
            amount=command.total,
            method=command.payment_method,
            currency=command.currency or "INR",
        )
        customer.record_order(command.total, placed_at=order.created_at)

        if command.coupon_code:
            coupon_repo = current_domain.repository_for(Coupon)
            coupon = coupon_repo.find_by_code(command.coupon_code)
            if coupon is not None:
                coupon.record_use()
                coupon_repo.add(coupon)

        customer_repo.add(customer)
        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Payment).add(payment)
        return str(order.id)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderPlacement:
    order: Order
    coupon: CouponOutcome


def _validate_request(items: list[dict], shipping_address: dict | None, payment_method: str) -> None:
    if not items:
        raise ValidationError({"items": ["Order must contain at least one item"]})
    if not shipping_address or not isinstance(shipping_address, dict):
        raise ValidationError({"shipping_address": ["Shipping address is required"]})
    if not str(shipping_address.get("email") or "").strip():
        raise ValidationError({"shipping_address": ["Shipping address email is required"]})
    if payment_method not in {m.value for m in PaymentMethod}:
        raise ValidationError({"payment_method": [f"Unsupported payment method: {payment_method}"]})

    for index, item in enumerate(items, start=1):
        if not item.get("product_id"):
            raise ValidationError({"items": [f"Item {index}: valid product ID is required"]})
        quantity = item.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"items": [f"Item {index}: quantity must be a whole number of at least 1"]})


def normalize_address(raw: dict) -> dict:
    """Map a checkout address onto the ShippingAddress snapshot fields."""
    address_type = str(raw.get("type") or raw.get("address_type") or AddressType.HOME.value).upper()
    return {
        "first_name": raw.get("first_name"),
        "last_name": raw.get("last_name"),
        "email": str(raw["email"]).strip().lower(),
        "phone": raw.get("phone"),
        "street": raw.get("street") or raw.get("address"),
        "landmark": raw.get("landmark"),
        "city": raw.get("city"),
        "state": raw.get("state"),
        "pincode": str(raw["pincode"]) if raw.get("pincode") is not None else None,
        "country": raw.get("country") or "India",
        "address_type": address_type,
    }


def _resolve_lines(items: list[dict]) -> list[CartLine]:
    repo = current_domain.repository_for(Product)
    lines = []
    for index, item in enumerate(items, start=1):
        product_id = str(item["product_id"]).strip()
        try:
            product = repo.get(product_id)
        except ObjectNotFoundError:
            raise ValidationError(
                {"items": [f"Item {index}: product {product_id} not found. Please refresh the cart and try again."]}
            ) from None
        if not product.is_active:
            raise ValidationError({"items": [f"Item {index}: {product.name} is no longer available"]})

        lines.append(
            CartLine(
                product_id=str(product.id),
                name=product.name,
                sku=product.sku or "N/A",
                price=product.price,
                discount=product.discount or 0.0,
                quantity=item["quantity"],
                size=item.get("size"),
                color=item.get("color"),
                image=product.image_for(item.get("color")),
                price_override=item.get("price"),
            )
        )
    return lines


def place_order(
    items: list[dict],
    shipping_address: dict,
    payment_method: str,
    coupon_code: str | None = None,
    customer_id: str | None = None,
) -> OrderPlacement:
    """Price, reserve and persist an order. Raises on any line failure."""
    _validate_request(items, shipping_address, payment_method)

    store = get_store_settings()
    if payment_method == PaymentMethod.COD.value and not store.cod_enabled:
        raise ValidationError({"payment_method": ["Cash on delivery is currently unavailable"]})

    address = normalize_address(shipping_address)
    cart_lines = _resolve_lines(items)
    coupon = current_domain.repository_for(Coupon).find_by_code(coupon_code) if coupon_code else None
    quote = price_cart(cart_lines, store, coupon=coupon, coupon_code=coupon_code)
    if quote.coupon.code and not quote.coupon.applied:
        logger.info("Coupon not applied", coupon_code=quote.coupon.code, reason=quote.coupon.message)

    ledger = get_ledger()
    reserved = ledger.reserve_all(
        StockLine(product_id=line.product_id, quantity=line.quantity, size=line.size) for line in quote.lines
    )
    try:
        order_number = next_document_number("ORD", ORDER_SEQUENCE)
        order_id = current_domain.process(
            PlaceOrder(
                order_number=order_number,
                customer_id=customer_id,
                items=json.dumps(
                    [
                        {**line.to_dict(), "stock_size": taken.size}
                        for line, taken in zip(quote.lines, reserved, strict=True)
                    ]
                ),
                shipping_address=json.dumps(address),
                subtotal=quote.subtotal,
                shipping_charges=quote.shipping,
                discount=quote.discount,
                total=quote.total,
                payment_method=payment_method,
                coupon_code=quote.coupon.code if quote.coupon.applied else None,
                currency=store.currency or "INR",
            ),
            asynchronous=False,
        )
    except Exception:
        logger.warning("Checkout failed after reservation, releasing stock", lines=len(reserved))
        ledger.release_all(reserved)
        raise

    order = current_domain.repository_for(Order).get(order_id)
    logger.info(
        "Order placed",
        order_number=order.order_number,
        total=order.total,
        payment_method=order.payment_method,
        coupon_applied=quote.coupon.applied,
    )

    if order.payment_method == PaymentMethod.COD.value:
        announce_order(order)

    return OrderPlacement(order=order, coupon=quote.coupon)
