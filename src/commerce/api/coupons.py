"""FastAPI routes for coupons."""

from fastapi import APIRouter

from commerce.api.schemas import CouponPreviewResponse, ValidateCouponRequest
from commerce.pricing.coupons import validate_coupon

coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("/validate", response_model=CouponPreviewResponse)
def validate(body: ValidateCouponRequest) -> CouponPreviewResponse:
    preview = validate_coupon(body.code, body.cart_value, body.quantity)
    return CouponPreviewResponse(
        code=preview.code,
        name=preview.name,
        description=preview.description,
        discount_type=preview.discount_type,
        discount_value=preview.discount_value,
        discount=preview.discount,
        final_amount=round(max(0.0, body.cart_value - preview.discount), 2),
    )
