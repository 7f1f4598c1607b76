"""FastAPI routes for payments: intents, verification and refunds."""

from fastapi import APIRouter

from commerce.api.schemas import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentView,
    RefundResponse,
    UpdatePaymentRefundRequest,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from commerce.ordering.queries import get_order
from commerce.payments.intent import create_payment_intent
from commerce.payments.ledger import list_payments, payments_for_order, update_payment_refund
from commerce.payments.refund import refund_order
from commerce.payments.verification import verify_payment

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intent", status_code=201, response_model=PaymentIntentResponse)
def create_intent(body: PaymentIntentRequest) -> PaymentIntentResponse:
    intent = create_payment_intent(body.order_id)
    return PaymentIntentResponse(
        order_id=intent.order_id,
        order_number=intent.order_number,
        payment_id=intent.payment_id,
        gateway_order_id=intent.gateway_order_id,
        amount=intent.amount,
        currency=intent.currency,
        key_id=intent.key_id,
    )


@payment_router.post("/verify", response_model=VerifyPaymentResponse)
def verify(body: VerifyPaymentRequest) -> VerifyPaymentResponse:
    verified = verify_payment(
        order_id=body.order_id,
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        signature=body.signature,
    )
    order = get_order(verified.order_id)
    return VerifyPaymentResponse(
        order_id=verified.order_id,
        payment_id=verified.payment_id,
        payment_status=order.payment_status,
    )


@payment_router.post("/orders/{order_id}/refund", response_model=RefundResponse)
def refund_cancelled_order(order_id: str) -> RefundResponse:
    get_order(order_id)
    refunded = refund_order(order_id)
    return RefundResponse(refunded=refunded, payment_status=get_order(order_id).payment_status)


@payment_router.get("/orders/{order_id}", response_model=list[PaymentView])
def get_order_payments(order_id: str) -> list[PaymentView]:
    return [PaymentView.from_payment(payment) for payment in payments_for_order(order_id)]


@payment_router.put("/{payment_id}/refund", response_model=PaymentView)
def update_refund(payment_id: str, body: UpdatePaymentRefundRequest) -> PaymentView:
    payment = update_payment_refund(
        payment_id,
        refund_status=body.refund_status,
        refund_amount=body.refund_amount,
        refund_transaction_id=body.refund_transaction_id,
        refund_method=body.refund_method,
    )
    return PaymentView.from_payment(payment)


@payment_router.get("", response_model=list[PaymentView])
def get_payments(status: str | None = None) -> list[PaymentView]:
    return [PaymentView.from_payment(payment) for payment in list_payments(status)]
