import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import cart_router, order_router, register_integration_error_handlers
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    register_integration_error_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    return TestClient(app)


@pytest.fixture()
def api_cart(client, customer):
    """Create a cart over HTTP and fill it with ``(product, quantity)`` lines."""

    def _cart(*lines, coupon_code=None):
        cart_id = client.post("/carts", json={"customer_id": str(customer.id)}).json()["cart_id"]
        for product, quantity in lines:
            response = client.post(f"/carts/{cart_id}/items", json={"product_id": str(product.id), "quantity": quantity})
            assert response.status_code == 201
        if coupon_code:
            assert client.post(f"/carts/{cart_id}/coupon", json={"coupon_code": coupon_code}).status_code == 200
        return cart_id

    return _cart


@pytest.fixture()
def api_place(client, address):
    def _place(cart_id):
        response = client.post(
            "/orders",
            json={"cart_id": cart_id, "shipping_address": address, "payment_method": "razorpay"},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _place


@pytest.fixture()
def api_pay(client, gateway):
    def _pay(placed, payment_id="pay_api_001", signature=None):
        gateway_order_id = placed["payment_intent"]["gateway_order_id"]
        return client.post(
            f"/orders/{placed['order']['order_id']}/verify-payment",
            json={
                "gateway_order_id": gateway_order_id,
                "payment_id": payment_id,
                "signature": signature or gateway.sign(gateway_order_id, payment_id),
            },
        )

    return _pay
