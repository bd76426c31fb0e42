"""Cart coupon management: command and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.coupon.coupon import Coupon
from ordering.domain import ordering
from ordering.errors import ConflictError


@ordering.command(part_of="ShoppingCart")
class ApplyCouponToCart:
    """Apply a coupon code to a shopping cart."""

    cart_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@ordering.command_handler(part_of=ShoppingCart)
class ApplyCouponHandler:
    @handle(ApplyCouponToCart)
    def apply_coupon(self, command):
        coupon = current_domain.repository_for(Coupon).find_by_code(command.coupon_code)
        if coupon is None:
            raise ObjectNotFoundError(f"Coupon {command.coupon_code} not found")
        if not coupon.is_valid():
            raise ConflictError(f"Coupon {coupon.code} is invalid or expired")

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.apply_coupon(coupon_id=coupon.id, coupon_code=coupon.code)
        repo.add(cart)
        return coupon.code
