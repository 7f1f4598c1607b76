"""Inventory ledger: atomic reserve and release of product stock.

Each reservation is a conditional decrement performed under the product's
lock: load, check, decrement, persist, unlock. Two checkouts racing for the
last unit therefore serialize, and the loser sees the updated count and
fails its check instead of overselling.

Multi-line reservations are all-or-nothing. Lines are reserved in order; if
one fails, the lines already taken are released before the error propagates.

Call the ledger outside a command handler. Stock must be persisted before its
lock is released, which an enclosing unit of work would postpone.
"""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from commerce.catalogue.product import Product
from commerce.utils.locks import stock_locks

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLine:
    """A quantity of one product, optionally of one size."""

    product_id: str
    quantity: int
    size: str | None = None


class InventoryLedger:
    """Reserve and release stock against Product aggregates."""

    def reserve(self, product_id: str, quantity: int, size: str | None = None) -> StockLine:
        """Take ``quantity`` units of the product, or raise ValidationError.

        The returned line carries the size only when its per-size count moved,
        so releasing it restores exactly what was taken.
        """
        with stock_locks.hold(product_id):
            repo = current_domain.repository_for(Product)
            product = repo.get(product_id)
            from_size = product.deduct_stock(quantity, size=size)
            repo.add(product)

        logger.info(
            "Stock reserved",
            product_id=product_id,
            size=size,
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return StockLine(product_id=product_id, quantity=quantity, size=size if from_size else None)

    def release(self, product_id: str, quantity: int, size: str | None = None) -> None:
        """Return units to stock. Missing products are logged and skipped."""
        with stock_locks.hold(product_id):
            repo = current_domain.repository_for(Product)
            try:
                product = repo.get(product_id)
            except ObjectNotFoundError:
                logger.warning("Stock release skipped, product missing", product_id=product_id, quantity=quantity)
                return
            product.restore_stock(quantity, size=size)
            repo.add(product)

        logger.info(
            "Stock released",
            product_id=product_id,
            size=size,
            quantity=quantity,
            remaining=product.stock_quantity,
        )

    def reserve_all(self, lines: Iterable[StockLine]) -> list[StockLine]:
        """Reserve every line or none of them."""
        reserved: list[StockLine] = []
        try:
            for line in lines:
                reserved.append(self.reserve(line.product_id, line.quantity, size=line.size))
        except Exception:
            if reserved:
                logger.warning("Rolling back partial reservation", lines=len(reserved))
                self.release_all(reserved)
            raise
        return reserved

    def release_all(self, lines: Iterable[StockLine]) -> None:
        for line in lines:
            self.release(line.product_id, line.quantity, size=line.size)


_ledger = InventoryLedger()


def get_ledger() -> InventoryLedger:
    return _ledger
