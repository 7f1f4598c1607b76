"""Pricing and coupon evaluation for a cart.

Pure functions over immutable inputs. The evaluator never looks anything up;
the checkout resolves products, settings and the coupon and hands them in.

    unit price = override, else round(price * (1 - discount/100))
    subtotal   = sum(unit price * quantity)
    shipping   = 0 when a positive free-shipping threshold is met, else flat
    discount   = coupon discount clamped to subtotal (0 if not applicable)
    total      = max(0, subtotal - discount + shipping)

Amounts are whole rupees; rounding is half-up.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from commerce.pricing.coupon import Coupon
from commerce.pricing.store_settings import StoreSettings


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CartLine:
    """A product snapshot and the quantity asked for."""

    product_id: str
    name: str
    sku: str
    price: float
    discount: float
    quantity: int
    size: str | None = None
    color: str | None = None
    image: str | None = None
    price_override: float | None = None


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    sku: str
    unit_price: float
    discount: float
    quantity: int
    size: str | None = None
    color: str | None = None
    image: str | None = None

    @property
    def total(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "price": self.unit_price,
            "discount": self.discount,
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
            "image": self.image,
        }


@dataclass(frozen=True)
class CouponOutcome:
    code: str | None = None
    applied: bool = False
    discount: float = 0.0
    message: str | None = None


@dataclass(frozen=True)
class Quote:
    lines: tuple[PricedLine, ...]
    subtotal: float
    shipping: float
    discount: float
    tax: float
    total: float
    coupon: CouponOutcome

    @property
    def quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


def unit_price(price: float, discount: float, override: float | None = None) -> float:
    if override:
        return override
    if discount and discount > 0:
        return round_half_up(price * (1 - discount / 100))
    return price


def evaluate_coupon(
    coupon: Coupon | None,
    code: str | None,
    subtotal: float,
    quantity: int,
    now: datetime | None = None,
) -> CouponOutcome:
    """Decide whether a coupon applies. Never raises: failures are reported."""
    if not code:
        return CouponOutcome()
    normalized = code.strip().upper()
    if coupon is None:
        return CouponOutcome(code=normalized, message=f"Coupon {normalized} is invalid")

    reason = coupon.ineligibility(subtotal, quantity, now=now)
    if reason:
        return CouponOutcome(code=normalized, message=reason)

    return CouponOutcome(code=normalized, applied=True, discount=coupon.discount_for(subtotal))


def price_cart(
    lines: list[CartLine],
    settings: StoreSettings,
    coupon: Coupon | None = None,
    coupon_code: str | None = None,
    now: datetime | None = None,
) -> Quote:
    priced = tuple(
        PricedLine(
            product_id=line.product_id,
            name=line.name,
            sku=line.sku,
            unit_price=unit_price(line.price, line.discount, line.price_override),
            discount=line.discount or 0.0,
            quantity=line.quantity,
            size=line.size,
            color=line.color,
            image=line.image,
        )
        for line in lines
    )
    subtotal = sum(line.total for line in priced)
    quantity = sum(line.quantity for line in priced)
    shipping = settings.shipping_for(subtotal)
    outcome = evaluate_coupon(coupon, coupon_code, subtotal, quantity, now=now)
    discount = min(outcome.discount, subtotal) if outcome.applied else 0.0
    total = max(0.0, subtotal - discount + shipping)

    return Quote(
        lines=priced,
        subtotal=subtotal,
        shipping=shipping,
        discount=discount,
        tax=0.0,
        total=total,
        coupon=outcome,
    )
