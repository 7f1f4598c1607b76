"""Product registration: command and handler.

Catalogue administration is out of scope; this is the one entry point needed
to put sellable products in front of the checkout, with the SKU kept unique.
"""

import json

from protean import handle
from protean.fields import Float, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.catalogue.product import Product
from commerce.domain import commerce
from commerce.errors import DuplicateError


@commerce.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=200)
    sku = String(required=True, max_length=100)
    price = Float(required=True, min_value=0.0)
    discount = Float(default=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    size_stock = Text()  # JSON: {"M": 4}
    images = Text()  # JSON list


@commerce.command_handler(part_of=Product)
class ProductRegistrationHandler:
    @handle(AddProduct)
    def add_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_sku(command.sku) is not None:
            raise DuplicateError(f"Product with SKU {command.sku} already exists")

        product = Product.create(
            name=command.name,
            sku=command.sku,
            price=command.price,
            discount=command.discount or 0.0,
            stock_quantity=command.stock_quantity or 0,
            size_stock=json.loads(command.size_stock) if command.size_stock else None,
            images=json.loads(command.images) if command.images else None,
        )
        repo.add(product)
        return str(product.id)
