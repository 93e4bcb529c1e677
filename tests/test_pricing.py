from dataclasses import dataclass
from decimal import Decimal

import pytest

from storefront.services.pricing import (
    FLAT_SHIPPING_FEE,
    PricingRules,
    calculate_order_totals,
    calculate_shipping,
    round_money,
    to_minor_units,
)


@dataclass
class Line:
    price: Decimal
    quantity: int


RULES = PricingRules(tax_rate=Decimal("0.115"))


def test_free_shipping_above_threshold():
    totals = calculate_order_totals([Line(Decimal("50"), 2)], RULES)

    assert totals.subtotal == Decimal("100.00")
    assert totals.shipping == Decimal("0")
    assert totals.tax == Decimal("11.50")
    assert totals.total == Decimal("111.50")


def test_flat_fee_below_threshold():
    totals = calculate_order_totals([Line(Decimal("10"), 1)], RULES)

    assert totals.shipping == FLAT_SHIPPING_FEE
    assert totals.tax == Decimal("1.15")
    assert totals.total == Decimal("21.15")


def test_threshold_itself_still_pays_shipping():
    totals = calculate_order_totals([Line(Decimal("75.00"), 1)], RULES)
    assert totals.shipping == Decimal("10.00")


def test_empty_cart_is_all_zero():
    totals = calculate_order_totals([], RULES)

    assert totals.subtotal == 0
    assert totals.tax == 0
    assert totals.shipping == 0
    assert totals.total == 0


def test_tax_rounds_half_up():
    # 0.13 * 0.115 = 0.01495 -> 0.01
    # 0.30 * 0.115 = 0.0345  -> 0.03
    # 1.30 * 0.115 = 0.1495  -> 0.15
    assert calculate_order_totals([Line(Decimal("0.13"), 1)], RULES).tax == Decimal("0.01")
    assert calculate_order_totals([Line(Decimal("0.30"), 1)], RULES).tax == Decimal("0.03")
    assert calculate_order_totals([Line(Decimal("1.30"), 1)], RULES).tax == Decimal("0.15")


@pytest.mark.parametrize("lines", [
    [Line(Decimal("19.99"), 3)],
    [Line(Decimal("0.01"), 1), Line(Decimal("74.99"), 1)],
    [Line(Decimal("33.33"), 2), Line(Decimal("12.47"), 5)],
    [Line(Decimal("249.95"), 1)],
])
def test_total_is_exact_sum(lines):
    totals = calculate_order_totals(lines, RULES)

    assert totals.total == totals.subtotal + totals.tax + totals.shipping
    assert totals.tax == round_money(totals.tax)


def test_float_prices_are_accepted():
    totals = calculate_order_totals([Line(19.99, 2)], RULES)
    assert totals.subtotal == Decimal("39.98")


def test_custom_rules():
    rules = PricingRules(
        tax_rate=Decimal("0.05"),
        free_shipping_threshold=Decimal("20"),
        flat_shipping_fee=Decimal("4.50"),
    )

    assert calculate_shipping(Decimal("20"), rules) == Decimal("4.50")
    assert calculate_shipping(Decimal("20.01"), rules) == Decimal("0")
    assert calculate_order_totals([Line(Decimal("10"), 1)], rules).total == Decimal("15.00")


def test_to_minor_units():
    assert to_minor_units(Decimal("111.50")) == 11150
    assert to_minor_units(Decimal("0.01")) == 1
    assert to_minor_units(Decimal("21.15")) == 2115


def test_free_items_still_pay_shipping():
    totals = calculate_order_totals([Line(Decimal("0"), 1)], RULES)

    assert totals.subtotal == 0
    assert totals.shipping == Decimal("10.00")
    assert totals.total == Decimal("10.00")


def test_subtotal_is_exact_sum_of_lines():
    lines = [Line(Decimal("0.05"), 3), Line(Decimal("19.99"), 7)]
    totals = calculate_order_totals(lines, RULES)
    assert totals.subtotal == Decimal("0.15") + Decimal("139.93")
