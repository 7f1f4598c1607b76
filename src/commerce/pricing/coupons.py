"""Coupon commands and the storefront coupon preview.

``CreateCoupon`` registers a coupon (codes are unique, stored upper-cased).
``validate_coupon`` is the strict counterpart of the lenient checkout rule:
it raises a ValidationError naming the failed rule so the shopper sees why a
code was refused before placing the order.
"""

from dataclasses import dataclass

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.errors import DuplicateError
from commerce.pricing.coupon import Coupon
from commerce.pricing.evaluator import evaluate_coupon


@commerce.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    name = String(max_length=200)
    description = String(max_length=500)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)
    min_cart_value = Float(default=0.0)
    min_quantity = Integer(default=1)
    max_discount = Float()
    valid_from = DateTime()
    valid_until = DateTime()
    usage_limit = Integer()
    is_active = Boolean(default=True)


@commerce.command_handler(part_of=Coupon)
class CouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = command.code.strip().upper()
        if repo.find_by_code(code) is not None:
            raise DuplicateError(f"Coupon {code} already exists")

        coupon = Coupon(
            code=code,
            name=command.name,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_cart_value=command.min_cart_value or 0.0,
            min_quantity=command.min_quantity or 1,
            max_discount=command.max_discount,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            usage_limit=command.usage_limit,
            is_active=command.is_active if command.is_active is not None else True,
        )
        repo.add(coupon)
        return str(coupon.id)


@dataclass(frozen=True)
class CouponPreview:
    code: str
    discount_type: str
    discount_value: float
    discount: float
    name: str | None = None
    description: str | None = None


def validate_coupon(code: str, cart_value: float, quantity: int = 1) -> CouponPreview:
    """Check a code against a cart and preview its discount."""
    if not code or not code.strip():
        raise ValidationError({"coupon_code": ["Coupon code is required"]})

    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    outcome = evaluate_coupon(coupon, code, cart_value, quantity)
    if not outcome.applied:
        raise ValidationError({"coupon_code": [outcome.message]})

    return CouponPreview(
        code=coupon.code,
        name=coupon.name,
        description=coupon.description,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        discount=outcome.discount,
    )
