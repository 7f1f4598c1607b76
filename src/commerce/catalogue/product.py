"""Product aggregate: the stock-bearing view of a catalogue item.

Catalogue CRUD lives outside this core; what matters here is the price and
discount read at checkout and the two stock counters the inventory ledger
moves:

    stock_quantity  general count, always moved
    size_stock      JSON map of size -> count, moved only when the requested
                    size holds a positive count (0 or missing means "not
                    tracked per size", so the general count decides)

``stock_status`` flips to OUT_OF_STOCK when the general count hits zero and
back to IN_STOCK on restock, unless an admin forced it out of stock.

A release puts units back on the size count only when the reservation took
them from it, so an untracked size stays untracked after a cancellation.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from commerce.catalogue.events import ProductAdded, ProductOutOfStock, StockDeducted, StockRestored
from commerce.domain import commerce


class StockStatus(Enum):
    IN_STOCK = "IN_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


@commerce.aggregate
class Product:
    name = String(required=True, max_length=200)
    sku = String(required=True, max_length=100)
    price = Float(required=True, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0, max_value=100.0)
    stock_quantity = Integer(default=0, min_value=0)
    size_stock = Text()  # JSON: {"M": 4, "L": 0}
    stock_status = String(
        max_length=20,
        choices=StockStatus,
        default=StockStatus.IN_STOCK.value,
    )
    stock_status_locked = Boolean(default=False)
    images = Text()  # JSON list of URLs
    images_by_color = Text()  # JSON: {"Black": ["https://..."]}
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        name: str,
        sku: str,
        price: float,
        discount: float = 0.0,
        stock_quantity: int = 0,
        size_stock: dict | None = None,
        images: list | None = None,
        images_by_color: dict | None = None,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            sku=sku,
            price=price,
            discount=discount or 0.0,
            stock_quantity=stock_quantity,
            size_stock=json.dumps(size_stock or {}),
            images=json.dumps(images or []),
            images_by_color=json.dumps(images_by_color or {}),
            stock_status=(StockStatus.IN_STOCK.value if stock_quantity > 0 else StockStatus.OUT_OF_STOCK.value),
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                sku=sku,
                name=name,
                stock_quantity=stock_quantity,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    def size_stock_map(self) -> dict[str, int]:
        return json.loads(self.size_stock) if self.size_stock else {}

    def tracks_size(self, size: str | None) -> bool:
        """True when ``size`` has a positive per-size count."""
        if not size:
            return False
        count = self.size_stock_map().get(size)
        return count is not None and count > 0

    def available_for(self, size: str | None = None) -> int:
        if self.tracks_size(size):
            return self.size_stock_map()[size]
        return self.stock_quantity or 0

    def image_for(self, color: str | None = None) -> str | None:
        if color and self.images_by_color:
            by_color = json.loads(self.images_by_color)
            if by_color.get(color):
                return by_color[color][0]
        images = json.loads(self.images) if self.images else []
        return images[0] if images else None

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def deduct_stock(self, quantity: int, size: str | None = None) -> bool:
        """Take ``quantity`` units out, or fail without touching any counter.

        Returns True when the per-size count moved as well as the general one.
        """
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        available = self.available_for(size)
        if available < quantity:
            label = f"{self.name} - Size {size}" if size else self.name
            raise ValidationError(
                {"stock": [f"Insufficient stock for {label}. Available: {available}, Required: {quantity}"]}
            )

        from_size = self.tracks_size(size)
        if from_size:
            sizes = self.size_stock_map()
            sizes[size] = sizes[size] - quantity
            self.size_stock = json.dumps(sizes)
        self.stock_quantity = max(0, (self.stock_quantity or 0) - quantity)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockDeducted(
                product_id=str(self.id),
                size=size,
                quantity=quantity,
                remaining=self.stock_quantity,
            )
        )
        self._refresh_stock_status()
        return from_size

    def restore_stock(self, quantity: int, size: str | None = None) -> None:
        """Put ``quantity`` units back. Never fails.

        ``size`` names the per-size count the reservation took from; pass None
        when only the general count moved.
        """
        if quantity < 1:
            return
        sizes = self.size_stock_map()
        if size and size in sizes:
            sizes[size] = (sizes[size] or 0) + quantity
            self.size_stock = json.dumps(sizes)
        self.stock_quantity = (self.stock_quantity or 0) + quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockRestored(
                product_id=str(self.id),
                size=size,
                quantity=quantity,
                remaining=self.stock_quantity,
            )
        )
        self._refresh_stock_status()

    def force_out_of_stock(self) -> None:
        """Admin override: keep the product unavailable regardless of counts.

        This pair is the hook for the catalogue admin, which lives outside this core.
        """
        self.stock_status = StockStatus.OUT_OF_STOCK.value
        self.stock_status_locked = True
        self.updated_at = datetime.now(UTC)

    def clear_stock_override(self) -> None:
        self.stock_status_locked = False
        self._refresh_stock_status()

    def _refresh_stock_status(self) -> None:
        if (self.stock_quantity or 0) <= 0:
            if self.stock_status != StockStatus.OUT_OF_STOCK.value:
                self.stock_status = StockStatus.OUT_OF_STOCK.value
                self.raise_(ProductOutOfStock(product_id=str(self.id), sku=self.sku))
        elif not self.stock_status_locked and self.stock_status == StockStatus.OUT_OF_STOCK.value:
            self.stock_status = StockStatus.IN_STOCK.value


@commerce.repository(part_of=Product)
class ProductRepository:
    def find_by_sku(self, sku: str) -> Product | None:
        results = self._dao.query.filter(sku=sku).all().items
        return results[0] if results else None
