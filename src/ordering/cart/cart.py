"""Shopping Cart aggregate (CQRS): the customer's selection before checkout.

The cart only holds product references and quantities. Names and prices are
read from the catalogue when an order is placed, after which the cart is
emptied and marked converted.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Dict, HasMany, Identifier, Integer, String

from ordering.cart.events import CartConverted, CartCouponApplied, CartItemAdded, CartItemRemoved
from ordering.domain import ordering


class CartStatus(Enum):
    ACTIVE = "active"
    CONVERTED = "converted"


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    variant = Dict()
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    coupon_id = Identifier()
    coupon_code = String(max_length=50)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    def _assert_active(self, message):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": [message]})

    def add_item(self, product_id, quantity, variant=None):
        """Add an item to the cart (or increase quantity if already present)."""
        self._assert_active("Items can only be added to an active cart")

        variant = variant or {}
        existing = next(
            (i for i in self.items if str(i.product_id) == str(product_id) and (i.variant or {}) == variant),
            None,
        )

        now = datetime.now(UTC)
        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(product_id=product_id, quantity=quantity, variant=variant, added_at=now)
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                quantity=quantity,
            )
        )
        return item_id

    def remove_item(self, item_id):
        self._assert_active("Items can only be removed from an active cart")

        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def apply_coupon(self, coupon_id, coupon_code):
        """Attach a coupon. A second coupon replaces the first."""
        self._assert_active("Coupons can only be applied to an active cart")

        self.coupon_id = coupon_id
        self.coupon_code = coupon_code
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCouponApplied(
                cart_id=str(self.id),
                coupon_id=str(coupon_id),
                coupon_code=coupon_code,
            )
        )

    def snapshot(self):
        """Line items as plain dicts, in the order they were added."""
        return [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "variant": item.variant or {},
            }
            for item in self.items
        ]

    def convert(self, order_id):
        """Empty the cart once an order has been placed from it."""
        self._assert_active("Only active carts can be checked out")

        for item in list(self.items):
            self.remove_items(item)
        self.coupon_id = None
        self.coupon_code = None
        self.status = CartStatus.CONVERTED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(CartConverted(cart_id=str(self.id), order_id=str(order_id)))
