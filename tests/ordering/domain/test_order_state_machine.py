"""Tests for Order state machine: valid transitions and invalid transition guards."""

import pytest
from ordering.order.order import CancellationActor, Order, OrderStatus, PaymentStatus
from protean.exceptions import ValidationError

GATEWAY_ORDER_ID = "order_test_001"


def _make_order():
    order = Order.create(
        order_number="WJ17292710000000001",
        customer_id="cust-001",
        items_data=[
            {"product_id": "prod-001", "name": "AquaPure RO", "unit_price": 1000.0, "quantity": 1},
        ],
        shipping_address={
            "name": "Asha Verma",
            "phone": "9876543210",
            "address_line1": "12 Lake View Road",
            "city": "Pune",
            "state": "Maharashtra",
            "pincode": "411001",
        },
        payment_method="razorpay",
        pricing={"subtotal": 1000.0, "tax": 180.0, "total": 1180.0},
    )
    order.record_payment_intent(GATEWAY_ORDER_ID, 118000, "INR")
    return order


def _order_at_state(target_status):
    """Create an order and advance it to the desired state."""
    order = _make_order()
    order._events.clear()

    if target_status == OrderStatus.PENDING:
        return order

    if target_status == OrderStatus.CANCELLED:
        order.cancel("Changed my mind", CancellationActor.CUSTOMER.value)
        order._events.clear()
        return order

    order.confirm_payment(GATEWAY_ORDER_ID, "pay_001", "sig")
    order._events.clear()
    if target_status == OrderStatus.PAID:
        return order

    order.record_shipment("AWB001", "FakeExpress", "https://track.example.com/AWB001")
    order._events.clear()
    if target_status == OrderStatus.PACKED:
        return order

    order.mark_shipped("admin")
    order._events.clear()
    if target_status == OrderStatus.SHIPPED:
        return order

    order.mark_delivered("admin")
    order._events.clear()
    if target_status == OrderStatus.DELIVERED:
        return order

    order.mark_returned()
    order._events.clear()
    return order


class TestPayment:
    def test_confirm_payment_moves_to_paid(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.confirm_payment(GATEWAY_ORDER_ID, "pay_001", "sig")
        assert order.status == OrderStatus.PAID.value
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.gateway_payment_id == "pay_001"
        assert order.gateway_signature == "sig"
        assert order.paid_at is not None
        assert order.status_history[-1].status == "paid"

    def test_confirm_payment_rejects_foreign_gateway_order(self):
        order = _order_at_state(OrderStatus.PENDING)
        with pytest.raises(ValidationError) as exc:
            order.confirm_payment("order_other", "pay_001", "sig")
        assert "gateway_order_id" in exc.value.messages

    def test_confirm_payment_twice_is_rejected(self):
        order = _order_at_state(OrderStatus.PAID)
        with pytest.raises(ValidationError):
            order.confirm_payment(GATEWAY_ORDER_ID, "pay_001", "sig")

    def test_failed_payment_cancels_order(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.fail_payment(GATEWAY_ORDER_ID, "pay_001", reason="Signature mismatch")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.cancelled_by == CancellationActor.SYSTEM.value
        assert order.inventory_committed is False

    def test_failed_payment_cannot_be_confirmed_later(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.fail_payment(GATEWAY_ORDER_ID, "pay_001", reason="Signature mismatch")
        with pytest.raises(ValidationError):
            order.confirm_payment(GATEWAY_ORDER_ID, "pay_002", "sig")

    def test_cancelled_order_cannot_be_paid(self):
        order = _order_at_state(OrderStatus.CANCELLED)
        with pytest.raises(ValidationError):
            order.confirm_payment(GATEWAY_ORDER_ID, "pay_001", "sig")


class TestCancellation:
    def test_cancel_pending_order(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.cancel("Changed my mind", CancellationActor.CUSTOMER.value)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_at is not None

    def test_cancel_paid_order_flags_refund(self):
        order = _order_at_state(OrderStatus.PAID)
        order.cancel("Found it cheaper", CancellationActor.CUSTOMER.value)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.REFUNDED.value
        assert order._events[-1].refunded is True

    @pytest.mark.parametrize(
        "state",
        [OrderStatus.PACKED, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.RETURNED],
    )
    def test_cannot_cancel_after_packing(self, state):
        order = _order_at_state(state)
        with pytest.raises(ValidationError) as exc:
            order.cancel("Too late", CancellationActor.CUSTOMER.value)
        assert exc.value.messages["status"] == ["Order cannot be cancelled at this stage"]


class TestFulfillmentTransitions:
    def test_record_shipment_packs_order(self):
        order = _order_at_state(OrderStatus.PAID)
        order.record_shipment("AWB001", "FakeExpress", "https://track.example.com/AWB001", "ship-1")
        assert order.status == OrderStatus.PACKED.value
        assert order.awb == "AWB001"
        assert order.shipment_status == "created"
        assert order.carrier_shipment_id == "ship-1"
        assert order.shipping_pending is False

    def test_record_shipment_requires_payment(self):
        order = _order_at_state(OrderStatus.PENDING)
        with pytest.raises(ValidationError) as exc:
            order.record_shipment("AWB001", "FakeExpress", "https://track.example.com/AWB001")
        assert exc.value.messages["payment_status"] == ["Cannot create shipment for unpaid order"]

    def test_record_shipment_only_once(self):
        order = _order_at_state(OrderStatus.PACKED)
        with pytest.raises(ValidationError) as exc:
            order.record_shipment("AWB002", "FakeExpress", "https://track.example.com/AWB002")
        assert exc.value.messages["awb"] == ["Shipment already created"]

    def test_shipment_pending_keeps_status(self):
        order = _order_at_state(OrderStatus.PAID)
        order.record_shipment_pending("Carrier unavailable")
        assert order.status == OrderStatus.PAID.value
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.shipping_pending is True
        assert order.shipment_error == "Carrier unavailable"

    def test_successful_retry_clears_pending_flag(self):
        order = _order_at_state(OrderStatus.PAID)
        order.record_shipment_pending("Carrier unavailable")
        order.record_shipment("AWB001", "FakeExpress", "https://track.example.com/AWB001")
        assert order.shipping_pending is False
        assert order.shipment_error is None

    def test_cannot_ship_before_packing(self):
        order = _order_at_state(OrderStatus.PAID)
        with pytest.raises(ValidationError):
            order.mark_shipped("admin")

    def test_cannot_deliver_before_shipping(self):
        order = _order_at_state(OrderStatus.PACKED)
        with pytest.raises(ValidationError):
            order.mark_delivered("admin")

    def test_delivery_sets_delivered_at(self):
        order = _order_at_state(OrderStatus.SHIPPED)
        order.mark_delivered("carrier")
        assert order.status == OrderStatus.DELIVERED.value
        assert order.delivered_at is not None

    def test_tracking_number_does_not_change_status(self):
        order = _order_at_state(OrderStatus.PACKED)
        order.assign_tracking_number("TRK-001")
        assert order.tracking_number == "TRK-001"
        assert order.status == OrderStatus.PACKED.value


class TestReturns:
    @pytest.mark.parametrize(
        "state",
        [
            OrderStatus.PENDING,
            OrderStatus.PAID,
            OrderStatus.PACKED,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ],
    )
    def test_any_state_can_be_returned(self, state):
        order = _order_at_state(state)
        order.mark_returned()
        assert order.status == OrderStatus.RETURNED.value
        assert order._events[-1].previous_status == state.value

    def test_returned_is_terminal(self):
        order = _order_at_state(OrderStatus.RETURNED)
        with pytest.raises(ValidationError):
            order.mark_returned()


class TestStatusHistory:
    def test_every_transition_is_recorded(self):
        order = _order_at_state(OrderStatus.DELIVERED)
        assert [entry.status for entry in order.status_history] == ["paid", "packed", "shipped", "delivered"]

    def test_history_entries_are_timestamped(self):
        order = _order_at_state(OrderStatus.PACKED)
        assert all(entry.changed_at is not None for entry in order.status_history)
        assert order.status_history[-1].note == "AWB AWB001"
