"""Persisted named counters backing human-readable document numbers.

Order and return numbers look like ``ORD{epoch-ms}{seq:04d}``. The timestamp
makes them readable; uniqueness comes from the counter, which only ever moves
forward and is advanced under a per-sequence lock.

Allocate numbers outside a command handler: the counter must be persisted
before the lock is released, and a surrounding unit of work would defer that.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.utils.locks import sequence_locks

ORDER_SEQUENCE = "order"
RETURN_SEQUENCE = "return"


@commerce.aggregate
class Sequence:
    name = String(required=True, max_length=50)
    value = Integer(default=0, min_value=0)
    updated_at = DateTime()

    def advance(self) -> int:
        self.value = (self.value or 0) + 1
        self.updated_at = datetime.now(UTC)
        return self.value


@commerce.repository(part_of=Sequence)
class SequenceRepository:
    def find_by_name(self, name: str) -> Sequence | None:
        results = self._dao.query.filter(name=name).all().items
        return results[0] if results else None


def next_value(sequence: str) -> int:
    """Advance and persist the named counter, returning its new value."""
    with sequence_locks.hold(sequence):
        repo = current_domain.repository_for(Sequence)
        counter = repo.find_by_name(sequence) or Sequence(name=sequence)
        value = counter.advance()
        repo.add(counter)
    return value


def next_document_number(prefix: str, sequence: str) -> str:
    """Return a new unique number such as ``ORD17040672000000042``."""
    value = next_value(sequence)
    stamp = int(datetime.now(UTC).timestamp() * 1000)
    return f"{prefix}{stamp}{value:04d}"
