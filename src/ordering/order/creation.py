"""Order placement: command and handler.

Placing an order reads the cart, re-prices every line against the live
catalogue, applies the cart's coupon and asks the payment gateway for an
intent. The order is persisted only after the gateway has answered, so a
gateway failure leaves nothing behind. Stock and coupon usage are not touched
until the payment is verified.
"""

import json
from dataclasses import dataclass

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.coupon import ledger as coupon_ledger
from ordering.domain import ordering
from ordering.errors import ConflictError
from ordering.integrations import current_integrations
from ordering.inventory.product import Product
from ordering.order.order import Order, ShippingAddress
from ordering.order.pricing import compute_totals, round_money, to_minor_units
from ordering.utils.logging import get_logger
from payments.gateway.port import PaymentIntent

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    cart_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=50)


@dataclass(frozen=True)
class PlacedOrder:
    order_id: str
    payment_intent: PaymentIntent


def _snapshot_items(cart_lines):
    """Price every cart line from the catalogue, rejecting anything unsellable."""
    repo = current_domain.repository_for(Product)
    items = []
    for line in cart_lines:
        product = repo.get(line["product_id"])
        if not product.is_available(line["quantity"]):
            raise ConflictError(f"{product.name} is out of stock or unavailable")

        items.append(
            {
                "product_id": str(product.id),
                "name": product.name,
                "image": product.image,
                "unit_price": product.price,
                "quantity": line["quantity"],
                "variant": line["variant"],
            }
        )
    return items


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        if command.payment_method != current_domain.SUPPORTED_PAYMENT_METHOD:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {command.payment_method}"]})

        address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )
        address = ShippingAddress(**address).to_dict()

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.get(command.cart_id)
        cart_lines = cart.snapshot()
        if not cart_lines:
            raise ValidationError({"cart": ["Cart is empty"]})

        items = _snapshot_items(cart_lines)
        subtotal = sum(round_money(item["unit_price"]) * item["quantity"] for item in items)

        discount = 0
        coupon_code = None
        if cart.coupon_id:
            coupon, discount = coupon_ledger.discount_for(cart.coupon_id, subtotal)
            coupon_code = coupon.code

        totals = compute_totals(
            subtotal,
            discount=discount,
            tax_rate=current_domain.TAX_RATE,
            shipping=current_domain.SHIPPING_FLAT_FEE,
        )
        currency = current_domain.CURRENCY

        integrations = current_integrations()
        order = Order.create(
            order_number=integrations.order_numbers.next_number(),
            customer_id=cart.customer_id,
            items_data=items,
            shipping_address=address,
            payment_method=command.payment_method,
            pricing=totals.as_dict(currency),
            coupon_id=cart.coupon_id,
            coupon_code=coupon_code,
        )

        intent = integrations.gateway.create_intent(
            receipt=order.order_number,
            amount=to_minor_units(totals.total),
            currency=currency,
            notes={"order_id": str(order.id), "customer_id": str(order.customer_id)},
        )
        order.record_payment_intent(intent.gateway_order_id, intent.amount, intent.currency)
        current_domain.repository_for(Order).add(order)

        cart.convert(order.id)
        cart_repo.add(cart)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=float(totals.total),
            gateway_order_id=intent.gateway_order_id,
        )
        return PlacedOrder(order_id=str(order.id), payment_intent=intent)
