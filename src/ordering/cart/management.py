"""Cart management: commands and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.customer.customer import Customer
from ordering.domain import ordering
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class CreateCart:
    """Open an empty cart for a known customer."""

    customer_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        # Raises ObjectNotFoundError for unknown customers
        customer = current_domain.repository_for(Customer).get(command.customer_id)

        cart = ShoppingCart.create(customer_id=customer.id)
        current_domain.repository_for(ShoppingCart).add(cart)
        logger.info("cart_created", cart_id=str(cart.id), customer_id=str(customer.id))
        return str(cart.id)
