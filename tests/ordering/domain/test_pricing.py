"""Tests for order money arithmetic."""

from decimal import Decimal

from ordering.order.pricing import compute_totals, round_money, to_minor_units, totals_balance


class TestComputeTotals:
    def test_coupon_checkout_example(self):
        totals = compute_totals(subtotal=2500, discount=250, tax_rate="0.18")

        assert totals.subtotal == Decimal("2500.00")
        assert totals.discount == Decimal("250.00")
        assert totals.tax == Decimal("405")
        assert totals.total == Decimal("2655.00")

    def test_tax_is_charged_on_discounted_subtotal(self):
        totals = compute_totals(subtotal=1000, discount=100)
        assert totals.tax == Decimal("162")

    def test_tax_rounds_half_up_to_whole_units(self):
        # 2.50 * 0.18 = 0.45 -> 0; 2.78 * 0.18 = 0.5004 -> 1
        assert compute_totals(subtotal="2.50").tax == Decimal("0")
        assert compute_totals(subtotal="2.78").tax == Decimal("1")

    def test_shipping_is_added_to_total(self):
        totals = compute_totals(subtotal=100, shipping=40)
        assert totals.total == Decimal("158.00")

    def test_totals_always_balance(self):
        for subtotal, discount in [(999.99, 0), (1234.5, 123.45), (10, 10), (0.01, 0)]:
            totals = compute_totals(subtotal=subtotal, discount=discount)
            assert totals_balance(totals.subtotal, totals.discount, totals.shipping, totals.tax, totals.total)

    def test_as_dict_uses_order_field_names(self):
        data = compute_totals(subtotal=2500, discount=250).as_dict("INR")
        assert data == {
            "subtotal": 2500.0,
            "discount": 250.0,
            "shipping_cost": 0.0,
            "tax": 405.0,
            "total": 2655.0,
            "currency": "INR",
        }


class TestRounding:
    def test_round_money_half_up(self):
        assert round_money("0.125") == Decimal("0.13")
        assert round_money(2.675) == Decimal("2.68")

    def test_minor_units(self):
        assert to_minor_units(2655) == 265500
        assert to_minor_units("10.005") == 1001
        assert to_minor_units(0.1) == 10


class TestTotalsBalance:
    def test_detects_mismatch(self):
        assert totals_balance(100, 0, 0, 18, 118)
        assert not totals_balance(100, 0, 0, 18, 117.99)
