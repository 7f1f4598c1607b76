"""Pydantic request/response schemas for the commerce API.

These are external contracts, kept separate from the Protean commands and
aggregates. Views are built from aggregates with ``from_*`` constructors.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str
    phone: str | None = None
    street: str | None = None
    landmark: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str = "India"
    type: str = "HOME"


class CartItemSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    size: str | None = None
    color: str | None = None
    price: float | None = Field(default=None, ge=0)


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str | None = None
    items: list[CartItemSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    payment_method: str = "COD"
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2, "size": "M"}],
                    "shipping_address": {
                        "first_name": "Asha",
                        "last_name": "Rao",
                        "email": "asha@example.com",
                        "phone": "+91 98765 43210",
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "pincode": "560001",
                    },
                    "payment_method": "COD",
                    "coupon_code": "WELCOME10",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    shipping_provider: str | None = None
    cancelled_reason: str | None = None
    notes: str | None = None
    expected_revision: int | None = None


class OrderItemView(BaseModel):
    id: str
    product_id: str
    name: str | None = None
    sku: str | None = None
    price: float
    discount: float = 0.0
    quantity: int
    size: str | None = None
    color: str | None = None
    image: str | None = None


class OrderView(BaseModel):
    id: str
    order_number: str
    customer_id: str
    items: list[OrderItemView]
    shipping_address: AddressSchema | None = None
    subtotal: float
    shipping_charges: float
    discount: float
    tax: float
    total: float
    coupon_code: str | None = None
    payment_method: str
    payment_status: str
    status: str
    external_order_id: str | None = None
    external_shipment_id: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_reason: str | None = None
    notes: str | None = None
    revision: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderView":
        address = order.shipping_address
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            items=[
                OrderItemView(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    name=item.name,
                    sku=item.sku,
                    price=item.price,
                    discount=item.discount or 0.0,
                    quantity=item.quantity,
                    size=item.size,
                    color=item.color,
                    image=item.image,
                )
                for item in order.items or []
            ],
            shipping_address=(
                AddressSchema(
                    first_name=address.first_name,
                    last_name=address.last_name,
                    email=address.email,
                    phone=address.phone,
                    street=address.street,
                    landmark=address.landmark,
                    city=address.city,
                    state=address.state,
                    pincode=address.pincode,
                    country=address.country or "India",
                    type=address.address_type or "HOME",
                )
                if address
                else None
            ),
            subtotal=order.subtotal or 0.0,
            shipping_charges=order.shipping_charges or 0.0,
            discount=order.discount or 0.0,
            tax=order.tax or 0.0,
            total=order.total or 0.0,
            coupon_code=order.coupon_code,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            status=order.status,
            external_order_id=order.external_order_id,
            external_shipment_id=order.external_shipment_id,
            tracking_number=order.tracking_number,
            carrier=order.carrier,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            cancelled_reason=order.cancelled_reason,
            notes=order.notes,
            revision=order.revision or 0,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class CouponOutcomeView(BaseModel):
    code: str | None = None
    applied: bool = False
    discount: float = 0.0
    message: str | None = None


class PlacedOrderResponse(BaseModel):
    order: OrderView
    coupon: CouponOutcomeView


class OrderStatsResponse(BaseModel):
    total_orders: int
    revenue: float
    by_status: dict[str, int]
    by_payment_method: dict[str, int]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class PaymentIntentRequest(BaseModel):
    order_id: str


class PaymentIntentResponse(BaseModel):
    order_id: str
    order_number: str
    payment_id: str
    gateway_order_id: str
    amount: int
    currency: str
    key_id: str


class VerifyPaymentRequest(BaseModel):
    order_id: str | None = None
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    signature: str | None = None


class VerifyPaymentResponse(BaseModel):
    order_id: str
    payment_id: str
    payment_status: str


class RefundResponse(BaseModel):
    refunded: bool
    payment_status: str


class UpdatePaymentRefundRequest(BaseModel):
    refund_status: str | None = None
    refund_amount: float | None = Field(default=None, ge=0)
    refund_transaction_id: str | None = None
    refund_method: str | None = None


class PaymentView(BaseModel):
    id: str
    order_id: str
    customer_id: str | None = None
    amount: float
    currency: str
    method: str
    gateway: str
    status: str
    gateway_order_id: str | None = None
    transaction_id: str | None = None
    paid_at: datetime | None = None
    refund_status: str
    refund_amount: float
    refund_transaction_id: str | None = None
    refund_method: str | None = None
    refunded_at: datetime | None = None
    failure_reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentView":
        return cls(
            id=str(payment.id),
            order_id=str(payment.order_id),
            customer_id=str(payment.customer_id) if payment.customer_id else None,
            amount=payment.amount or 0.0,
            currency=payment.currency or "INR",
            method=payment.method,
            gateway=payment.gateway,
            status=payment.status,
            gateway_order_id=payment.gateway_order_id,
            transaction_id=payment.transaction_id,
            paid_at=payment.paid_at,
            refund_status=payment.refund_status,
            refund_amount=payment.refund_amount or 0.0,
            refund_transaction_id=payment.refund_transaction_id,
            refund_method=payment.refund_method,
            refunded_at=payment.refunded_at,
            failure_reason=payment.failure_reason,
            created_at=payment.created_at,
        )


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------
class CreateShipmentRequest(BaseModel):
    courier_id: str | None = None


class ShipmentResponse(BaseModel):
    awb_assigned: bool
    external_order_id: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    message: str


class CourierView(BaseModel):
    id: str | None = None
    name: str | None = None
    rate: float | None = None
    etd: str | None = None


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------
class ReturnLineRequest(BaseModel):
    order_item_id: str
    quantity: int | None = None
    reason: str | None = None


class CreateReturnRequest(BaseModel):
    customer_id: str
    order_id: str
    items: list[ReturnLineRequest]
    reason: str
    description: str | None = None


class ApproveReturnRequest(BaseModel):
    admin_notes: str | None = None


class RejectReturnRequest(BaseModel):
    reason: str | None = None


class UpdateReturnRefundRequest(BaseModel):
    refund_status: str | None = None
    refund_amount: float | None = Field(default=None, ge=0)
    refund_method: str | None = None
    refund_transaction_id: str | None = None


class ReturnItemView(BaseModel):
    id: str
    order_item_id: str
    product_id: str
    name: str | None = None
    quantity: int
    size: str | None = None
    reason: str | None = None
    refund: float = 0.0


class ReturnView(BaseModel):
    id: str
    return_number: str
    order_id: str
    order_number: str | None = None
    customer_id: str
    items: list[ReturnItemView]
    reason: str
    description: str | None = None
    refund_amount: float
    status: str
    refund_status: str
    refund_method: str | None = None
    refund_transaction_id: str | None = None
    admin_notes: str | None = None
    rejected_reason: str | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_return(cls, request) -> "ReturnView":
        return cls(
            id=str(request.id),
            return_number=request.return_number,
            order_id=str(request.order_id),
            order_number=request.order_number,
            customer_id=str(request.customer_id),
            items=[
                ReturnItemView(
                    id=str(item.id),
                    order_item_id=str(item.order_item_id),
                    product_id=str(item.product_id),
                    name=item.name,
                    quantity=item.quantity,
                    size=item.size,
                    reason=item.reason,
                    refund=item.refund or 0.0,
                )
                for item in request.items or []
            ],
            reason=request.reason,
            description=request.description,
            refund_amount=request.refund_amount or 0.0,
            status=request.status,
            refund_status=request.refund_status,
            refund_method=request.refund_method,
            refund_transaction_id=request.refund_transaction_id,
            admin_notes=request.admin_notes,
            rejected_reason=request.rejected_reason,
            approved_at=request.approved_at,
            rejected_at=request.rejected_at,
            completed_at=request.completed_at,
            created_at=request.created_at,
        )


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str
    cart_value: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class CouponPreviewResponse(BaseModel):
    code: str
    name: str | None = None
    description: str | None = None
    discount_type: str
    discount_value: float
    discount: float
    final_amount: float
