"""Application tests for CancelOrder and stock restoration."""

import pytest
from ordering.order.cancellation import CancelOrder
from ordering.order.order import CancellationActor, OrderStatus, PaymentStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


@pytest.fixture()
def product(make_product):
    return make_product(stock=10)


@pytest.fixture()
def order_id(product, make_cart, place_order):
    return place_order(make_cart((product, 3))).order_id


def _cancel(order_id, **kwargs):
    current_domain.process(CancelOrder(order_id=order_id, **kwargs), asynchronous=False)


class TestCancelPendingOrder:
    def test_order_is_cancelled(self, order_id, load_order):
        _cancel(order_id, reason="Ordered by mistake")

        order = load_order(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.cancellation_reason == "Ordered by mistake"
        assert order.cancelled_by == CancellationActor.CUSTOMER.value

    def test_default_reason(self, order_id, load_order):
        _cancel(order_id)
        assert load_order(order_id).cancellation_reason == "Cancelled by user"

    def test_stock_is_not_restored(self, order_id, product, load_product):
        _cancel(order_id)
        assert load_product(product.id).stock == 10


class TestCancelPaidOrder:
    @pytest.fixture()
    def paid_order_id(self, order_id, pay, carrier):
        # Keep the order in PAID by failing the carrier booking
        carrier.configure(should_succeed=False)
        pay(order_id)
        return order_id

    def test_payment_is_flagged_refunded(self, paid_order_id, load_order):
        _cancel(paid_order_id)

        order = load_order(paid_order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.REFUNDED.value

    def test_stock_is_restored_once(self, paid_order_id, product, load_product):
        assert load_product(product.id).stock == 7

        _cancel(paid_order_id)

        product = load_product(product.id)
        assert product.stock == 10
        assert product.sales == 3

    def test_second_cancel_is_rejected(self, paid_order_id, product, load_product):
        _cancel(paid_order_id)
        with pytest.raises(ValidationError):
            _cancel(paid_order_id)
        assert load_product(product.id).stock == 10


class TestCancellationGuards:
    def test_packed_order_cannot_be_cancelled(self, order_id, pay, load_order):
        pay(order_id)
        with pytest.raises(ValidationError) as exc:
            _cancel(order_id)
        assert exc.value.messages["status"] == ["Order cannot be cancelled at this stage"]
        assert load_order(order_id).status == OrderStatus.PACKED.value

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _cancel("missing-order")
