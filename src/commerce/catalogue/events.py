"""Catalogue domain events: stock movements on products."""

from protean.fields import Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Product")
class ProductAdded:
    """A product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    name = String(required=True)
    stock_quantity = Integer(required=True)


@commerce.event(part_of="Product")
class StockDeducted:
    """Units were taken out of a product's stock for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    size = String()
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@commerce.event(part_of="Product")
class StockRestored:
    """Previously deducted units were put back."""

    __version__ = 1

    product_id = Identifier(required=True)
    size = String()
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@commerce.event(part_of="Product")
class ProductOutOfStock:
    """General stock of a product reached zero."""

    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
