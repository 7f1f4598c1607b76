"""Payment aggregate: money movement for one order on one gateway.

Created alongside the order (status PENDING), advanced by gateway callbacks
and refunds, never deleted.

Payment status:
    PENDING → SUCCESS | FAILED
    SUCCESS → REFUNDED | PARTIALLY_REFUNDED
    PARTIALLY_REFUNDED → REFUNDED

Refund sub-state:
    NONE → INITIATED → PROCESSING → COMPLETED
    INITIATED | PROCESSING → FAILED → INITIATED (retry)

``refund_amount`` is cumulative: every completed refund adds to it.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce
from commerce.payments.events import (
    PaymentIntentCreated,
    PaymentRefunded,
    PaymentRefundFailed,
    PaymentSucceeded,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class Gateway(Enum):
    RAZORPAY = "RAZORPAY"
    STRIPE = "STRIPE"
    PAYPAL = "PAYPAL"
    COD = "COD"
    WALLET = "WALLET"


class RefundStatus(Enum):
    NONE = "NONE"
    INITIATED = "INITIATED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


_REFUND_IN_FLIGHT = {RefundStatus.INITIATED.value, RefundStatus.PROCESSING.value}

GATEWAY_FOR_METHOD = {
    "COD": Gateway.COD,
    "ONLINE": Gateway.RAZORPAY,
    "WALLET": Gateway.WALLET,
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Payment:
    order_id = Identifier(required=True)
    customer_id = Identifier()
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    method = String(max_length=10, required=True)
    gateway = String(max_length=20, choices=Gateway, required=True)
    status = String(max_length=20, choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway_order_id = String(max_length=100)
    transaction_id = String(max_length=100)
    paid_at = DateTime()
    refund_status = String(max_length=20, choices=RefundStatus, default=RefundStatus.NONE.value)
    refund_amount = Float(default=0.0, min_value=0.0)
    refund_transaction_id = String(max_length=100)
    refund_method = String(max_length=20)
    refunded_at = DateTime()
    failure_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(
        cls,
        order_id: str,
        amount: float,
        method: str,
        customer_id: str | None = None,
        currency: str = "INR",
        gateway: str | None = None,
    ):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            customer_id=customer_id,
            amount=amount,
            currency=currency,
            method=method,
            gateway=gateway or GATEWAY_FOR_METHOD.get(method, Gateway.COD).value,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------
    def attach_intent(self, gateway_order_id: str, amount: float) -> None:
        if self.status == PaymentStatus.SUCCESS.value:
            raise ValidationError({"status": ["Payment already captured"]})
        now = datetime.now(UTC)
        self.gateway_order_id = gateway_order_id
        self.amount = amount
        self.updated_at = now
        self.raise_(
            PaymentIntentCreated(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                gateway=self.gateway,
                gateway_order_id=gateway_order_id,
                amount=amount,
                created_at=now,
            )
        )

    def mark_succeeded(self, transaction_id: str | None = None) -> None:
        if self.status == PaymentStatus.SUCCESS.value and self.transaction_id == transaction_id:
            return
        if self.status in (PaymentStatus.REFUNDED.value, PaymentStatus.PARTIALLY_REFUNDED.value):
            raise ValidationError({"status": [f"Cannot capture a payment in {self.status} state"]})
        now = datetime.now(UTC)
        self.status = PaymentStatus.SUCCESS.value
        if transaction_id:
            self.transaction_id = transaction_id
        self.paid_at = now
        self.updated_at = now
        self.raise_(
            PaymentSucceeded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                gateway=self.gateway,
                transaction_id=self.transaction_id,
                amount=self.amount,
                paid_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    @property
    def refund_settled(self) -> bool:
        return (
            self.status == PaymentStatus.REFUNDED.value
            or self.refund_status == RefundStatus.COMPLETED.value
        )

    @property
    def refund_in_flight(self) -> bool:
        return self.refund_status in _REFUND_IN_FLIGHT

    def begin_refund(self) -> None:
        """Claim the refund so a concurrent caller skips it."""
        if self.refund_settled:
            raise ValidationError({"refund_status": ["Payment is already refunded"]})
        if self.refund_in_flight:
            raise ValidationError({"refund_status": ["A refund is already in progress"]})
        self.refund_status = RefundStatus.INITIATED.value
        self.updated_at = datetime.now(UTC)

    def complete_gateway_refund(self, amount: float, refund_transaction_id: str | None) -> None:
        now = datetime.now(UTC)
        self.refund_status = RefundStatus.COMPLETED.value
        self.refund_amount = amount
        self.refund_transaction_id = refund_transaction_id
        self.refund_method = "ORIGINAL"
        self.refunded_at = now
        self.status = PaymentStatus.REFUNDED.value
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=amount,
                total_refunded=self.refund_amount,
                refund_transaction_id=refund_transaction_id,
                status=self.status,
                refunded_at=now,
            )
        )

    def fail_refund(self, reason: str) -> None:
        now = datetime.now(UTC)
        self.refund_status = RefundStatus.FAILED.value
        self.failure_reason = reason[:500] if reason else None
        self.updated_at = now
        self.raise_(
            PaymentRefundFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                reason=self.failure_reason or "",
                failed_at=now,
            )
        )

    def add_refund(self, amount: float, refund_transaction_id: str | None = None, method: str | None = None) -> None:
        """Accumulate a refund settled outside the gateway call (returns)."""
        now = datetime.now(UTC)
        self.refund_amount = (self.refund_amount or 0.0) + (amount or 0.0)
        self.refund_status = RefundStatus.COMPLETED.value
        if refund_transaction_id:
            self.refund_transaction_id = refund_transaction_id
        if method:
            self.refund_method = method
        self.refunded_at = now
        self.status = (
            PaymentStatus.REFUNDED.value
            if self.refund_amount >= (self.amount or 0.0)
            else PaymentStatus.PARTIALLY_REFUNDED.value
        )
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=amount or 0.0,
                total_refunded=self.refund_amount,
                refund_transaction_id=refund_transaction_id,
                status=self.status,
                refunded_at=now,
            )
        )

    def update_refund(
        self,
        refund_status: str | None = None,
        refund_amount: float | None = None,
        refund_transaction_id: str | None = None,
        refund_method: str | None = None,
    ) -> None:
        """Admin reconciliation of a refund handled out of band."""
        if refund_status:
            try:
                RefundStatus(refund_status)
            except ValueError:
                raise ValidationError({"refund_status": [f"Unknown refund status: {refund_status}"]}) from None
            self.refund_status = refund_status
        if refund_amount is not None:
            self.refund_amount = refund_amount
        if refund_transaction_id:
            self.refund_transaction_id = refund_transaction_id
        if refund_method:
            self.refund_method = refund_method
        now = datetime.now(UTC)
        if refund_status == RefundStatus.COMPLETED.value:
            self.status = PaymentStatus.REFUNDED.value
            self.refunded_at = now
        self.updated_at = now


@commerce.repository(part_of=Payment)
class PaymentRepository:
    def for_order(self, order_id: str, gateway: str | None = None) -> Payment | None:
        filters = {"order_id": str(order_id)}
        if gateway:
            filters["gateway"] = gateway
        results = self._dao.query.filter(**filters).all().items
        return results[0] if results else None

    def listing(self, status: str | None = None) -> list[Payment]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return sorted(query.all().items, key=lambda p: p.created_at, reverse=True)

    def all_for_order(self, order_id: str) -> list[Payment]:
        payments = self._dao.query.filter(order_id=str(order_id)).all().items
        return sorted(payments, key=lambda p: p.created_at)
