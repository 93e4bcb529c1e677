"""Order-total calculation shared by the API and the checkout client.

Money is handled as ``Decimal`` end to end. Only tax is rounded; subtotal,
shipping and total are exact sums of two-decimal amounts, so
``total == subtotal + tax + shipping`` always holds.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

DEFAULT_TAX_RATE = Decimal("0.115")
FREE_SHIPPING_THRESHOLD = Decimal("75.00")
FLAT_SHIPPING_FEE = Decimal("10.00")

Number = Union[Decimal, int, float, str]


class PricedLine(Protocol):
    price: Number
    quantity: int


@dataclass(frozen=True)
class PricingRules:
    tax_rate: Decimal = DEFAULT_TAX_RATE
    free_shipping_threshold: Decimal = FREE_SHIPPING_THRESHOLD
    flat_shipping_fee: Decimal = FLAT_SHIPPING_FEE


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
        }


def to_decimal(value: Number) -> Decimal:
    # str() first so floats like 19.99 don't drag binary noise in
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price: Number, quantity: int) -> Decimal:
    # prices carry whole cents, so the product is exact
    return to_decimal(price) * quantity


def calculate_subtotal(items: Iterable[PricedLine]) -> Decimal:
    subtotal = ZERO
    for item in items:
        subtotal += line_total(item.price, item.quantity)
    return subtotal


def calculate_tax(subtotal: Decimal, rate: Decimal) -> Decimal:
    return round_money(subtotal * to_decimal(rate))


def calculate_shipping(subtotal: Decimal, rules: PricingRules) -> Decimal:
    if subtotal > rules.free_shipping_threshold:
        return ZERO
    return round_money(to_decimal(rules.flat_shipping_fee))


def calculate_order_totals(items: Iterable[PricedLine], rules: PricingRules = PricingRules()) -> OrderTotals:
    """Derive subtotal, tax, shipping and total for a cart.

    An empty cart yields all-zero totals, shipping included. A cart of
    free items still pays shipping.
    """
    items = list(items)
    subtotal = calculate_subtotal(items)
    tax = calculate_tax(subtotal, rules.tax_rate)
    shipping = calculate_shipping(subtotal, rules) if items else ZERO

    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )


def to_minor_units(amount: Decimal) -> int:
    """Amount in cents, as the payment provider expects it."""
    return int((round_money(to_decimal(amount)) * 100).to_integral_value(rounding=ROUND_HALF_UP))
