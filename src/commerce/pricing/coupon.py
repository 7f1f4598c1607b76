"""Coupon aggregate and its eligibility rules.

A coupon is looked up by its upper-cased code. Eligibility is checked rule by
rule so the first failing rule can be named back to the shopper:

    active -> started -> not expired -> usage left -> cart value -> quantity

BUY_X_GET_Y coupons are discounted exactly like PERCENTAGE ones.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Integer, String

from commerce.domain import commerce


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FLAT = "FLAT"
    BUY_X_GET_Y = "BUY_X_GET_Y"


@commerce.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    name = String(max_length=200)
    description = String(max_length=500)
    discount_type = String(
        required=True,
        max_length=20,
        choices=DiscountType,
        default=DiscountType.PERCENTAGE.value,
    )
    discount_value = Float(required=True, min_value=0.0)
    min_cart_value = Float(default=0.0, min_value=0.0)
    min_quantity = Integer(default=1, min_value=1)
    max_discount = Float()
    valid_from = DateTime()
    valid_until = DateTime()
    usage_limit = Integer()
    used_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)

    def ineligibility(self, cart_value: float, quantity: int, now: datetime | None = None) -> str | None:
        """Return why the coupon cannot apply to this cart, or None if it can."""
        now = now or datetime.now(UTC)
        if not self.is_active:
            return f"Coupon {self.code} is not active"
        if self.valid_from and _aware(self.valid_from) > now:
            return f"Coupon {self.code} is not yet active"
        if self.valid_until and _aware(self.valid_until) < now:
            return f"Coupon {self.code} has expired"
        if self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit:
            return f"Coupon {self.code} usage limit reached"
        if cart_value < (self.min_cart_value or 0):
            return f"Minimum cart value of {self.min_cart_value:g} required for coupon {self.code}"
        if (self.min_quantity or 1) > 1 and quantity < self.min_quantity:
            return f"Buy at least {self.min_quantity} items to use coupon {self.code}"
        return None

    def discount_for(self, cart_value: float) -> float:
        """Raw discount for ``cart_value``, clamped to the cart value."""
        if self.discount_type == DiscountType.FLAT.value:
            discount = self.discount_value
        else:
            discount = cart_value * self.discount_value / 100
            if self.max_discount and discount > self.max_discount:
                discount = self.max_discount
        return min(discount, cart_value)

    def record_use(self) -> None:
        self.used_count = (self.used_count or 0) + 1


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


@commerce.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        if not code:
            return None
        results = self._dao.query.filter(code=code.strip().upper()).all().items
        return results[0] if results else None
