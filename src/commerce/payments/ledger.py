"""Payment listing and admin refund reconciliation.

Refunds settled outside the automatic flow (bank transfer, store credit)
are recorded here by an admin.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.payments.payment import Payment


@commerce.command(part_of="Payment")
class UpdatePaymentRefund:
    payment_id = Identifier(required=True)
    refund_status = String(max_length=20)
    refund_amount = Float(min_value=0.0)
    refund_transaction_id = String(max_length=100)
    refund_method = String(max_length=20)


@commerce.command_handler(part_of=Payment)
class PaymentAdminHandler:
    @handle(UpdatePaymentRefund)
    def update_refund(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.update_refund(
            refund_status=command.refund_status,
            refund_amount=command.refund_amount,
            refund_transaction_id=command.refund_transaction_id,
            refund_method=command.refund_method,
        )
        repo.add(payment)


def update_payment_refund(
    payment_id: str,
    refund_status: str | None = None,
    refund_amount: float | None = None,
    refund_transaction_id: str | None = None,
    refund_method: str | None = None,
) -> Payment:
    current_domain.process(
        UpdatePaymentRefund(
            payment_id=payment_id,
            refund_status=refund_status,
            refund_amount=refund_amount,
            refund_transaction_id=refund_transaction_id,
            refund_method=refund_method,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Payment).get(payment_id)


def list_payments(status: str | None = None) -> list[Payment]:
    return current_domain.repository_for(Payment).listing(status)


def payments_for_order(order_id: str) -> list[Payment]:
    return current_domain.repository_for(Payment).all_for_order(order_id)
