"""Product aggregate (CQRS): the slice of the catalogue that ordering needs.

Product CRUD lives elsewhere. Ordering reads name, image and price when an
order is placed, and is the only writer of ``stock`` and ``sales``, which the
inventory ledger changes when a payment is verified or a paid order is
cancelled.
"""

from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Integer, String

from ordering.domain import ordering
from ordering.inventory.events import StockCommitted, StockRestored


@ordering.aggregate
class Product:
    name = String(required=True, max_length=255)
    image = String(max_length=500, sanitize=False)
    price = Float(required=True, min_value=0.0)
    # May go negative when two paid orders race for the last units
    stock = Integer(default=0)
    sales = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)

    @classmethod
    def create(cls, name, price, stock=0, image=None, is_active=True):
        return cls(name=name, price=price, stock=stock, image=image, sales=0, is_active=is_active)

    def is_available(self, quantity):
        return bool(self.is_active) and self.stock >= quantity

    def commit_sale(self, quantity, order_id):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self.stock -= quantity
        self.sales = (self.sales or 0) + quantity

        self.raise_(
            StockCommitted(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                stock=self.stock,
                sales=self.sales,
            )
        )

    def restock(self, quantity, order_id):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self.stock += quantity

        self.raise_(
            StockRestored(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                stock=self.stock,
            )
        )
