"""Order money arithmetic.

Amounts are computed with Decimal and rounded half-up: discounts to two
decimals, tax to whole currency units. The aggregate stores the results as
floats, so every comparison goes back through ``to_decimal``.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
UNIT = Decimal("1")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_units(value) -> Decimal:
    return to_decimal(value).quantize(UNIT, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """Gateway amount in the smallest currency unit (paise)."""
    return int(round_units(to_decimal(amount) * 100))


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    def as_dict(self, currency: str) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "discount": float(self.discount),
            "shipping_cost": float(self.shipping),
            "tax": float(self.tax),
            "total": float(self.total),
            "currency": currency,
        }


def compute_totals(subtotal, discount=0, tax_rate="0.18", shipping=0) -> OrderTotals:
    """Tax is charged on the discounted subtotal and rounded to whole units."""
    subtotal = round_money(subtotal)
    discount = round_money(discount)
    shipping = round_money(shipping)
    tax = round_units((subtotal - discount) * to_decimal(tax_rate))

    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        tax=tax,
        total=subtotal - discount + shipping + tax,
    )


def totals_balance(subtotal, discount, shipping, tax, total) -> bool:
    return to_decimal(total) == to_decimal(subtotal) - to_decimal(discount) + to_decimal(shipping) + to_decimal(tax)
