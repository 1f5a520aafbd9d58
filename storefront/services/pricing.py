"""
Pricing engine.

Pure functions, no session and no I/O: the cart view and checkout both price
lines through here so the numbers a customer sees in the cart are the numbers
frozen into the order.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from storefront.utils.settings import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE, TAX_RATE

ZERO = Decimal("0")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return line_total(self.unit_price, self.quantity)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def effective_unit_price(product_price: Decimal, variant_price: Decimal | None = None) -> Decimal:
    """Variant price wins whenever a variant is chosen."""
    if variant_price is not None:
        return Decimal(variant_price)
    return Decimal(product_price)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return Decimal(unit_price) * quantity


def subtotal(lines: Iterable[PricedLine]) -> Decimal:
    return sum((line.total for line in lines), ZERO)


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def tax_for(amount: Decimal) -> Decimal:
    """Tax rounded half-up to whole cents, so stored totals add up."""
    return to_cents(amount * TAX_RATE)


def shipping_for(amount: Decimal) -> Decimal:
    #free shipping strictly above the threshold
    if amount > FREE_SHIPPING_THRESHOLD:
        return ZERO
    return SHIPPING_FEE


def price_subtotal(amount: Decimal) -> PriceBreakdown:
    amount = to_cents(amount)
    tax = tax_for(amount)
    shipping = shipping_for(amount)
    return PriceBreakdown(
        subtotal=amount,
        tax=tax,
        shipping=shipping,
        total=amount + tax + shipping,
    )


def price_lines(lines: Iterable[PricedLine]) -> PriceBreakdown:
    return price_subtotal(subtotal(lines))
