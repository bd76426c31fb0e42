"""Integration tests for Order event-sourcing persistence and replay."""

from ordering.order.events import OrderCreated, PaymentConfirmed, PaymentIntentCreated, ShipmentCreated
from ordering.order.order import Order
from protean import current_domain


class TestOrderEventStream:
    def test_paid_order_stream(self, make_product, make_cart, place_order, pay):
        order_id = place_order(make_cart((make_product(), 1))).order_id
        pay(order_id)

        messages = current_domain.event_store.store.read(f"ordering::order-{order_id}")
        event_types = [m.metadata.headers.type for m in messages]

        assert event_types[:4] == [
            OrderCreated.__type__,
            PaymentIntentCreated.__type__,
            PaymentConfirmed.__type__,
            ShipmentCreated.__type__,
        ]

    def test_reload_matches_replay(self, make_product, make_cart, place_order, pay, load_order):
        order_id = place_order(make_cart((make_product(), 2))).order_id
        pay(order_id)

        loaded = load_order(order_id)
        replayed = current_domain.event_store.store.load_aggregate(Order, order_id)

        assert replayed.status == loaded.status == "packed"
        assert replayed.awb == loaded.awb
        assert replayed.inventory_committed is True
        assert [item.id for item in replayed.items] == [item.id for item in loaded.items]
        assert replayed._version == loaded._version
