"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json
from datetime import UTC, datetime

import pytest
from ordering.order.cancellation import CancelOrder
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderReturned,
    OrderShipped,
    PaymentConfirmed,
    PaymentIntentCreated,
    PaymentVerificationFailed,
    ShipmentCreated,
    ShipmentCreationFailed,
    ShipmentStatusUpdated,
    TrackingNumberAssigned,
)
from ordering.order.order import Order
from ordering.order.payment import VerifyPayment
from protean.exceptions import ValidationError
from protean.testing import given as given_
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "OrderCreated": OrderCreated,
    "PaymentIntentCreated": PaymentIntentCreated,
    "PaymentConfirmed": PaymentConfirmed,
    "PaymentVerificationFailed": PaymentVerificationFailed,
    "ShipmentCreated": ShipmentCreated,
    "ShipmentCreationFailed": ShipmentCreationFailed,
    "ShipmentStatusUpdated": ShipmentStatusUpdated,
    "TrackingNumberAssigned": TrackingNumberAssigned,
    "OrderShipped": OrderShipped,
    "OrderDelivered": OrderDelivered,
    "OrderReturned": OrderReturned,
    "OrderCancelled": OrderCancelled,
}

GATEWAY_ORDER_ID = "order_gw_001"
AWB = "AWB001"


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_id():
    return "ord-001"


@pytest.fixture()
def customer_id():
    return "cust-001"


# ---------------------------------------------------------------------------
# Event fixtures (past tense: what happened)
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_created(order_id, customer_id):
    return OrderCreated(
        order_id=order_id,
        order_number="WJ17292710000000001",
        customer_id=customer_id,
        items=json.dumps(
            [
                {
                    "id": "item-1",
                    "product_id": "prod-001",
                    "name": "AquaPure RO",
                    "image": "https://cdn.example.com/ro.jpg",
                    "unit_price": 1000.0,
                    "quantity": 1,
                    "variant": {},
                }
            ]
        ),
        shipping_address=json.dumps(
            {
                "name": "Asha Verma",
                "phone": "9876543210",
                "email": "asha@example.com",
                "address_line1": "12 Lake View Road",
                "city": "Pune",
                "state": "Maharashtra",
                "pincode": "411001",
            }
        ),
        payment_method="razorpay",
        subtotal=1000.0,
        discount=0.0,
        shipping_cost=0.0,
        tax=180.0,
        total=1180.0,
        currency="INR",
        created_at=datetime.now(UTC),
    )


@pytest.fixture()
def payment_intent_created(order_id):
    return PaymentIntentCreated(
        order_id=order_id,
        gateway_order_id=GATEWAY_ORDER_ID,
        amount=118000,
        currency="INR",
    )


@pytest.fixture()
def payment_confirmed(order_id):
    return PaymentConfirmed(
        order_id=order_id,
        gateway_order_id=GATEWAY_ORDER_ID,
        payment_id="pay-001",
        signature="sig-001",
        amount=1180.0,
        paid_at=datetime.now(UTC),
    )


@pytest.fixture()
def shipment_created(order_id):
    return ShipmentCreated(
        order_id=order_id,
        awb=AWB,
        courier_name="FakeExpress",
        tracking_url=f"https://track.fake-carrier.example.com/{AWB}",
        created_at=datetime.now(UTC),
    )


@pytest.fixture()
def shipment_creation_failed(order_id):
    return ShipmentCreationFailed(
        order_id=order_id,
        reason="Carrier unavailable",
        failed_at=datetime.now(UTC),
    )


@pytest.fixture()
def order_shipped(order_id):
    return OrderShipped(order_id=order_id, source="carrier", shipped_at=datetime.now(UTC))


@pytest.fixture()
def order_delivered(order_id):
    return OrderDelivered(order_id=order_id, source="carrier", delivered_at=datetime.now(UTC))


@pytest.fixture()
def order_returned(order_id):
    return OrderReturned(order_id=order_id, previous_status="delivered", returned_at=datetime.now(UTC))


@pytest.fixture()
def order_cancelled(order_id):
    return OrderCancelled(
        order_id=order_id,
        reason="Changed my mind",
        cancelled_by="Customer",
        refunded=False,
        cancelled_at=datetime.now(UTC),
    )


# ---------------------------------------------------------------------------
# Command fixtures (imperative: what to do)
# ---------------------------------------------------------------------------
@pytest.fixture()
def verify_payment(order_id, gateway):
    return VerifyPayment(
        order_id=order_id,
        gateway_order_id=GATEWAY_ORDER_ID,
        payment_id="pay-001",
        signature=gateway.sign(GATEWAY_ORDER_ID, "pay-001"),
    )


@pytest.fixture()
def cancel_order(order_id):
    return CancelOrder(order_id=order_id, reason="Changed my mind")


# ---------------------------------------------------------------------------
# Given steps: Order (event sourcing via protean.testing)
# ---------------------------------------------------------------------------
@given("an order was placed", target_fixture="order")
def _(order_created, payment_intent_created):
    return given_(Order, order_created, payment_intent_created)


@given("the order was paid", target_fixture="order")
def _(order, payment_confirmed):
    return order.after(payment_confirmed)


@given("the shipment was booked", target_fixture="order")
def _(order, shipment_created):
    return order.after(shipment_created)


@given("the shipment booking failed", target_fixture="order")
def _(order, shipment_creation_failed):
    return order.after(shipment_creation_failed)


@given("the order was shipped", target_fixture="order")
def _(order, order_shipped):
    return order.after(order_shipped)


@given("the order was delivered", target_fixture="order")
def _(order, order_delivered):
    return order.after(order_delivered)


@given("the order was returned", target_fixture="order")
def _(order, order_returned):
    return order.after(order_returned)


@given("the order was cancelled", target_fixture="order")
def _(order, order_cancelled):
    return order.after(order_cancelled)


@given("the carrier is unavailable")
def _(carrier):
    carrier.configure(should_succeed=False, failure_reason="Carrier unavailable")


# ---------------------------------------------------------------------------
# Then steps: Order (shared, plain assertions)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(order, status):
    assert order.payment_status == status


@then(parsers.cfparse('the shipment status is "{status}"'))
def _(order, status):
    assert order.shipment_status == status


@then("the order action fails with a validation error")
def _(order):
    assert order.rejected
    assert isinstance(order.rejection, ValidationError)


@then(parsers.cfparse('the order action is rejected with "{message}"'))
def _(order, message):
    assert order.rejected
    assert message in order.rejection_messages


@then("no order events are raised")
def _(order):
    assert order.accepted
    assert len(order.events) == 0


@then(parsers.cfparse("an {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events


@then(parsers.cfparse("a {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events
