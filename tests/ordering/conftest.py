import json
from datetime import UTC, datetime, timedelta

import pytest
from fulfillment.carrier.fake_adapter import FakeCarrier
from ordering.cart.cart import ShoppingCart
from ordering.coupon.coupon import Coupon
from ordering.customer.customer import Customer
from ordering.integrations import Integrations, bind_integrations
from ordering.inventory.product import Product
from ordering.order.creation import PlaceOrder
from ordering.order.numbering import OrderNumberSequence
from ordering.order.order import Order
from ordering.order.payment import VerifyPayment
from payments.gateway.fake_adapter import FakeGateway
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture()
def gateway():
    return FakeGateway(key_secret="rzp_test_secret")


@pytest.fixture()
def carrier():
    return FakeCarrier()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed, gateway, carrier):
    from ordering.domain import ordering

    with ordering_bed.domain_context():
        bind_integrations(
            ordering,
            Integrations(gateway=gateway, carrier=carrier, order_numbers=OrderNumberSequence(prefix="WJ")),
        )
        yield


# ---------------------------------------------------------------------------
# Catalogue and customer data
# ---------------------------------------------------------------------------
@pytest.fixture()
def address():
    return {
        "name": "Asha Verma",
        "phone": "9876543210",
        "email": "asha@example.com",
        "address_line1": "12 Lake View Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    }


@pytest.fixture()
def customer():
    record = Customer(name="Asha Verma", email="asha.verma@example.com", phone="9876543210")
    current_domain.repository_for(Customer).add(record)
    return record


@pytest.fixture()
def make_product():
    def _make(name="AquaPure RO", price=1000.0, stock=10, is_active=True):
        product = Product.create(
            name=name,
            price=price,
            stock=stock,
            image=f"https://cdn.example.com/{name}.jpg",
            is_active=is_active,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def make_coupon():
    def _make(code="SAVE10", coupon_type="percentage", value=10.0, **kwargs):
        now = datetime.now(UTC)
        kwargs.setdefault("valid_from", now - timedelta(days=1))
        kwargs.setdefault("valid_until", now + timedelta(days=30))
        coupon = Coupon.create(code=code, coupon_type=coupon_type, value=value, **kwargs)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture()
def make_cart(customer):
    """Persist a cart for ``customer`` holding ``(product, quantity)`` lines."""

    def _make(*lines, coupon=None):
        cart = ShoppingCart.create(customer_id=customer.id)
        for product, quantity in lines:
            cart.add_item(product_id=product.id, quantity=quantity)
        if coupon is not None:
            cart.apply_coupon(coupon_id=coupon.id, coupon_code=coupon.code)
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart

    return _make


# ---------------------------------------------------------------------------
# Order workflow helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def place_order(address):
    def _place(cart, payment_method="razorpay"):
        return current_domain.process(
            PlaceOrder(
                cart_id=cart.id,
                shipping_address=json.dumps(address),
                payment_method=payment_method,
            ),
            asynchronous=False,
        )

    return _place


@pytest.fixture()
def pay(gateway):
    """Verify a payment for ``order_id`` with a genuine or tampered signature."""

    def _pay(order_id, payment_id="pay_test_001", signature=None):
        order = current_domain.repository_for(Order).get(order_id)
        return current_domain.process(
            VerifyPayment(
                order_id=order_id,
                gateway_order_id=order.gateway_order_id,
                payment_id=payment_id,
                signature=signature or gateway.sign(order.gateway_order_id, payment_id),
            ),
            asynchronous=False,
        )

    return _pay


@pytest.fixture()
def load_order():
    def _load(order_id):
        return current_domain.repository_for(Order).get(order_id)

    return _load


@pytest.fixture()
def load_product():
    def _load(product_id):
        return current_domain.repository_for(Product).get(product_id)

    return _load
