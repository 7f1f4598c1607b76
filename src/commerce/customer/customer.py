"""Customer aggregate: the buyer an order belongs to.

Accounts are managed elsewhere. The core only needs to find a customer by
email (creating a guest on first checkout) and keep the running order
aggregates up to date.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, Integer, String

from commerce.domain import commerce


@commerce.aggregate
class Customer:
    name = String(max_length=200)
    email = String(required=True, max_length=254)
    phone = String(max_length=20)
    is_guest = Boolean(default=False)
    total_orders = Integer(default=0, min_value=0)
    total_spent = Float(default=0.0, min_value=0.0)
    last_order_date = DateTime()
    created_at = DateTime()

    @classmethod
    def register_guest(cls, first_name: str, last_name: str, email: str, phone: str | None = None):
        name = f"{first_name or ''} {last_name or ''}".strip()
        return cls(
            name=name or email,
            email=email.strip().lower(),
            phone=phone,
            is_guest=True,
            created_at=datetime.now(UTC),
        )

    def record_order(self, total: float, placed_at: datetime | None = None) -> None:
        self.total_orders = (self.total_orders or 0) + 1
        self.total_spent = (self.total_spent or 0.0) + total
        self.last_order_date = placed_at or datetime.now(UTC)


@commerce.repository(part_of=Customer)
class CustomerRepository:
    def find_by_email(self, email: str) -> Customer | None:
        results = self._dao.query.filter(email=email.strip().lower()).all().items
        return results[0] if results else None
