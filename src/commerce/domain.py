"""Commerce domain: order lifecycle and fulfillment reconciliation.

A single Protean domain hosts the catalogue stock, pricing, ordering,
payments, fulfillment and returns areas. Checkout touches stock, orders and
payments in one request, so they share a domain and a memory of record.
"""

import structlog
from protean.domain import Domain

commerce = Domain(name="commerce")

logger = structlog.get_logger(__name__)
