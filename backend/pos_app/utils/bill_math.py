from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class BillTotals(NamedTuple):
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    total: Decimal


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    return unit_price * quantity


def compute_totals(
    line_subtotals: Iterable[Decimal],
    discount_percent: Decimal,
    tax_percent: Decimal,
) -> BillTotals:
    """
    Derive bill totals from line subtotals and bill-level modifiers.

    Discount applies to the subtotal; tax applies to the discounted amount.
    Values are exact; rounding is left to presentation.
    """
    subtotal = sum(line_subtotals, Decimal("0"))
    discount_amount = subtotal * discount_percent / HUNDRED
    taxable_amount = subtotal - discount_amount
    tax_amount = taxable_amount * tax_percent / HUNDRED
    total = taxable_amount + tax_amount
    return BillTotals(subtotal, discount_amount, taxable_amount, tax_amount, total)


def is_valid_percent(value: Decimal) -> bool:
    return Decimal("0") <= value <= HUNDRED


def quantize_money(value: Decimal) -> Decimal:
    """Round to two decimal places for receipts and API output"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
