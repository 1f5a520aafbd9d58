from decimal import Decimal

import pytest

from storefront.services import pricing
from storefront.services.pricing import PricedLine


def test_variant_price_overrides_product_price():
    assert pricing.effective_unit_price(Decimal("100"), Decimal("150")) == Decimal("150")
    assert pricing.effective_unit_price(Decimal("100"), None) == Decimal("100")


def test_line_total_is_unit_price_times_quantity():
    line = PricedLine(unit_price=Decimal("19.99"), quantity=3)
    assert line.total == Decimal("59.97")


def test_small_order_pays_shipping():
    lines = [
        PricedLine(unit_price=Decimal("300"), quantity=2),
        PricedLine(unit_price=Decimal("450"), quantity=1),
    ]
    breakdown = pricing.price_lines(lines)

    assert breakdown.subtotal == Decimal("1050")
    assert breakdown.tax == Decimal("105")
    assert breakdown.shipping == Decimal("300")
    assert breakdown.total == Decimal("1455")


def test_large_order_ships_free():
    breakdown = pricing.price_lines([PricedLine(unit_price=Decimal("2500"), quantity=1)])

    assert breakdown.subtotal == Decimal("2500")
    assert breakdown.tax == Decimal("250")
    assert breakdown.shipping == Decimal("0")
    assert breakdown.total == Decimal("2750")


@pytest.mark.parametrize(
    "amount, shipping",
    [
        ("0", "300"),
        ("1999.99", "300"),
        ("2000", "300"),
        ("2000.01", "0"),
        ("10000", "0"),
    ],
)
def test_shipping_threshold_is_strict(amount, shipping):
    assert pricing.shipping_for(Decimal(amount)) == Decimal(shipping)


def test_total_is_sum_of_parts():
    breakdown = pricing.price_subtotal(Decimal("123.45"))
    assert breakdown.total == breakdown.subtotal + breakdown.tax + breakdown.shipping
    assert breakdown.tax == Decimal("12.35")
    assert breakdown.total == Decimal("435.80")


@pytest.mark.parametrize(
    "amount, tax",
    [
        ("10.05", "1.01"),
        ("10.04", "1.00"),
        ("0.05", "0.01"),
        ("0.04", "0.00"),
        ("19.99", "2.00"),
    ],
)
def test_tax_rounds_half_up_to_cents(amount, tax):
    result = pricing.tax_for(Decimal(amount))

    assert result == Decimal(tax)
    assert result.as_tuple().exponent == -2


def test_empty_cart_subtotal_is_zero():
    assert pricing.subtotal([]) == Decimal("0")
