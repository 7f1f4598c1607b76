"""FastAPI routes for orders: checkout, reads and admin status changes."""

from fastapi import APIRouter

from commerce.api.schemas import (
    CouponOutcomeView,
    OrderStatsResponse,
    OrderView,
    PlacedOrderResponse,
    PlaceOrderRequest,
    UpdateOrderStatusRequest,
)
from commerce.ordering.checkout import place_order
from commerce.ordering.cod import mark_order_paid
from commerce.ordering.queries import get_order, list_customer_orders, list_orders, order_stats
from commerce.ordering.status import update_order_status

order_router = APIRouter(prefix="/orders", tags=["orders"])
customer_order_router = APIRouter(prefix="/customers", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlacedOrderResponse)
def create_order(body: PlaceOrderRequest) -> PlacedOrderResponse:
    placement = place_order(
        items=[item.model_dump() for item in body.items],
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method.upper(),
        coupon_code=body.coupon_code,
        customer_id=body.customer_id,
    )
    coupon = placement.coupon
    return PlacedOrderResponse(
        order=OrderView.from_order(placement.order),
        coupon=CouponOutcomeView(
            code=coupon.code,
            applied=coupon.applied,
            discount=coupon.discount,
            message=coupon.message,
        ),
    )


@order_router.get("/stats", response_model=OrderStatsResponse)
def get_order_stats() -> OrderStatsResponse:
    stats = order_stats()
    return OrderStatsResponse(
        total_orders=stats.total_orders,
        revenue=stats.revenue,
        by_status=stats.by_status,
        by_payment_method=stats.by_payment_method,
    )


@order_router.get("", response_model=list[OrderView])
def get_orders(status: str | None = None) -> list[OrderView]:
    return [OrderView.from_order(order) for order in list_orders(status)]


@order_router.get("/{order_id}", response_model=OrderView)
def get_order_detail(order_id: str) -> OrderView:
    return OrderView.from_order(get_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderView)
def change_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderView:
    update_order_status(
        order_id,
        body.status.upper(),
        tracking_number=body.tracking_number,
        shipping_provider=body.shipping_provider,
        cancelled_reason=body.cancelled_reason,
        notes=body.notes,
        expected_revision=body.expected_revision,
    )
    return OrderView.from_order(get_order(order_id))


@order_router.post("/{order_id}/mark-paid", response_model=OrderView)
def mark_cod_order_paid(order_id: str) -> OrderView:
    return OrderView.from_order(mark_order_paid(order_id))


@customer_order_router.get("/{customer_id}/orders", response_model=list[OrderView])
def get_customer_orders(customer_id: str) -> list[OrderView]:
    return [OrderView.from_order(order) for order in list_customer_orders(customer_id)]
