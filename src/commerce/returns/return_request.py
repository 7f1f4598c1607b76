"""ReturnRequest aggregate: a customer's request to send back delivered items.

Return status:
    PENDING → APPROVED → PROCESSING → COMPLETED
    PENDING → REJECTED

Refund sub-state: PENDING → INITIATED → PROCESSING → COMPLETED, or FAILED.
Completing the refund closes the return; it happens once.

At most one open (PENDING, APPROVED or PROCESSING) return exists per order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from commerce.domain import commerce
from commerce.inventory.ledger import StockLine
from commerce.returns.events import (
    ReturnApproved,
    ReturnRefundCompleted,
    ReturnRejected,
    ReturnRequested,
)


class ReturnStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"


class ReturnRefundStatus(Enum):
    PENDING = "PENDING"
    INITIATED = "INITIATED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RefundMethod(Enum):
    ORIGINAL = "ORIGINAL"
    WALLET = "WALLET"


OPEN_RETURN_STATUSES = (
    ReturnStatus.PENDING.value,
    ReturnStatus.APPROVED.value,
    ReturnStatus.PROCESSING.value,
)

DEFAULT_REJECTION_REASON = "Return request rejected"


@commerce.entity(part_of="ReturnRequest")
class ReturnItem:
    order_item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=10)
    stock_size = String(max_length=20)
    reason = String(max_length=500)
    refund = Float(default=0.0, min_value=0.0)


@commerce.aggregate
class ReturnRequest:
    return_number = String(required=True, max_length=50)
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    customer_id = Identifier(required=True)
    items = HasMany(ReturnItem)
    reason = String(required=True, max_length=500)
    description = Text()
    refund_amount = Float(default=0.0, min_value=0.0)
    status = String(max_length=20, choices=ReturnStatus, default=ReturnStatus.PENDING.value)
    refund_status = String(max_length=20, choices=ReturnRefundStatus, default=ReturnRefundStatus.PENDING.value)
    refund_method = String(max_length=20, choices=RefundMethod)
    refund_transaction_id = String(max_length=100)
    admin_notes = Text()
    rejected_reason = String(max_length=500)
    approved_at = DateTime()
    rejected_at = DateTime()
    completed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(
        cls,
        return_number: str,
        order_id: str,
        order_number: str,
        customer_id: str,
        items_data: list[dict],
        reason: str,
        refund_amount: float,
        description: str | None = None,
    ):
        if not items_data:
            raise ValidationError({"items": ["Please select at least one item with quantity to return"]})

        now = datetime.now(UTC)
        request = cls(
            return_number=return_number,
            order_id=order_id,
            order_number=order_number,
            customer_id=customer_id,
            reason=reason,
            description=description,
            refund_amount=refund_amount,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            request.add_items(ReturnItem(**item_data))

        request.raise_(
            ReturnRequested(
                return_id=str(request.id),
                return_number=return_number,
                order_id=order_id,
                customer_id=customer_id,
                refund_amount=refund_amount,
                requested_at=now,
            )
        )
        return request

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_RETURN_STATUSES

    def stock_lines(self) -> list[StockLine]:
        return [
            StockLine(product_id=str(i.product_id), quantity=i.quantity, size=i.stock_size) for i in self.items or []
        ]

    def _require_pending(self) -> None:
        if self.status != ReturnStatus.PENDING.value:
            raise ValidationError({"status": ["Return request is not pending"]})

    def approve(self, admin_notes: str | None = None) -> None:
        self._require_pending()
        now = datetime.now(UTC)
        self.status = ReturnStatus.APPROVED.value
        self.approved_at = now
        self.updated_at = now
        if admin_notes:
            self.admin_notes = admin_notes
        self.raise_(
            ReturnApproved(
                return_id=str(self.id),
                return_number=self.return_number,
                order_id=str(self.order_id),
                approved_at=now,
            )
        )

    def reject(self, reason: str | None = None) -> None:
        self._require_pending()
        now = datetime.now(UTC)
        self.status = ReturnStatus.REJECTED.value
        self.rejected_at = now
        self.rejected_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        self.updated_at = now
        self.raise_(
            ReturnRejected(
                return_id=str(self.id),
                return_number=self.return_number,
                reason=self.rejected_reason,
                rejected_at=now,
            )
        )

    def update_refund(
        self,
        refund_status: str | None = None,
        refund_amount: float | None = None,
        refund_method: str | None = None,
        refund_transaction_id: str | None = None,
    ) -> bool:
        """Record refund progress. Returns True when this call completed the refund."""
        if refund_status:
            try:
                ReturnRefundStatus(refund_status)
            except ValueError:
                raise ValidationError({"refund_status": [f"Unknown refund status: {refund_status}"]}) from None
        if refund_method:
            try:
                RefundMethod(refund_method)
            except ValueError:
                raise ValidationError({"refund_method": [f"Unknown refund method: {refund_method}"]}) from None

        if self.status == ReturnStatus.COMPLETED.value:
            if refund_status in (None, ReturnRefundStatus.COMPLETED.value):
                return False
            raise ValidationError({"refund_status": ["Refund for this return is already completed"]})
        if self.status not in (ReturnStatus.APPROVED.value, ReturnStatus.PROCESSING.value):
            raise ValidationError({"status": ["Refunds can only be recorded for approved returns"]})

        now = datetime.now(UTC)
        if refund_status:
            self.refund_status = refund_status
        if refund_method:
            self.refund_method = refund_method
        if refund_transaction_id:
            self.refund_transaction_id = refund_transaction_id
        if refund_amount is not None:
            self.refund_amount = refund_amount
        self.updated_at = now

        if refund_status in (ReturnRefundStatus.INITIATED.value, ReturnRefundStatus.PROCESSING.value):
            self.status = ReturnStatus.PROCESSING.value
            return False
        if refund_status != ReturnRefundStatus.COMPLETED.value:
            return False

        self.status = ReturnStatus.COMPLETED.value
        self.completed_at = now
        self.raise_(
            ReturnRefundCompleted(
                return_id=str(self.id),
                return_number=self.return_number,
                order_id=str(self.order_id),
                refund_amount=self.refund_amount or 0.0,
                refund_method=self.refund_method,
                completed_at=now,
            )
        )
        return True


@commerce.repository(part_of=ReturnRequest)
class ReturnRequestRepository:
    def open_for_order(self, order_id: str) -> ReturnRequest | None:
        results = self._dao.query.filter(order_id=str(order_id)).all().items
        return next((r for r in results if r.is_open), None)

    def for_customer(self, customer_id: str) -> list[ReturnRequest]:
        results = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return sorted(results, key=lambda r: r.created_at, reverse=True)

    def with_status(self, status: str | None = None) -> list[ReturnRequest]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return sorted(query.all().items, key=lambda r: r.created_at, reverse=True)
