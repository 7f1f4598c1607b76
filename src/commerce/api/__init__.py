"""Commerce API package."""

from commerce.api.coupons import coupon_router
from commerce.api.errors import register_commerce_error_handlers
from commerce.api.orders import customer_order_router, order_router
from commerce.api.payments import payment_router
from commerce.api.returns import customer_return_router, return_router
from commerce.api.shipments import shipment_router

ROUTERS = [
    order_router,
    customer_order_router,
    payment_router,
    shipment_router,
    return_router,
    customer_return_router,
    coupon_router,
]

__all__ = [
    "ROUTERS",
    "coupon_router",
    "customer_order_router",
    "customer_return_router",
    "order_router",
    "payment_router",
    "register_commerce_error_handlers",
    "return_router",
    "shipment_router",
]
