"""
Line-item and invoice total calculations.

Pure functions over integer amounts in the smallest currency unit. Nothing in
here touches the database, so the same input always produces the same output.
"""

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List

from app.common.exceptions import InvalidLineItem, InvalidAmount
from app.common.money import to_decimal, round_half_up

HUNDRED = Decimal(100)

# Scales of the stored quantity and tax_rate columns
QUANTITY_STEP = Decimal("0.001")
TAX_RATE_STEP = Decimal("0.01")


@dataclass(frozen=True)
class LineItemInput:
    """One priced row as entered by the user. Amounts are in the smallest unit."""
    quantity: Decimal
    unit_price: int
    tax_rate: Decimal = Decimal(0)
    discount: int = 0
    title: str = ""


@dataclass(frozen=True)
class LineAmounts:
    line_subtotal: int
    line_tax: int
    line_discount: int
    line_total: int


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: int = 0
    tax_total: int = 0
    discount_total: int = 0
    total: int = 0

    def amount_due(self, amount_paid: int) -> int:
        """Raw due amount against the payment ledger; negative when overpaid."""
        return self.total - amount_paid


def _as_decimal(value, field: str) -> Decimal:
    try:
        return to_decimal(value, field)
    except InvalidAmount as e:
        raise InvalidLineItem(e.message)


def _quantize(value, step: Decimal, field: str) -> Decimal:
    try:
        return _as_decimal(value, field).quantize(step, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidLineItem(f"{field} is out of range, got {value}")


def round_to_stored_precision(item: LineItemInput) -> LineItemInput:
    """
    Round quantity to 3 and tax rate to 2 decimal places, the precision the
    line is stored with. Totals computed before and after a reload then agree.
    """
    return replace(
        item,
        quantity=_quantize(item.quantity, QUANTITY_STEP, "quantity"),
        tax_rate=_quantize(item.tax_rate, TAX_RATE_STEP, "tax_rate"),
    )


def validate_line_item(item: LineItemInput) -> None:
    """
    Check a line item before it is saved.

    Raises:
        InvalidLineItem: blank title, quantity <= 0, negative unit price or
            discount, or a tax rate outside [0, 100].
    """
    if not item.title or not item.title.strip():
        raise InvalidLineItem("Line item title is required")

    quantity = _as_decimal(item.quantity, "quantity")
    if quantity <= 0:
        raise InvalidLineItem(f"Quantity must be greater than zero, got {quantity}")

    if isinstance(item.unit_price, bool) or not isinstance(item.unit_price, int):
        raise InvalidLineItem("Unit price must be an integer amount in the smallest unit")
    if item.unit_price < 0:
        raise InvalidLineItem("Unit price cannot be negative")

    if isinstance(item.discount, bool) or not isinstance(item.discount, int):
        raise InvalidLineItem("Discount must be an integer amount in the smallest unit")
    if item.discount < 0:
        raise InvalidLineItem("Discount cannot be negative")

    tax_rate = _as_decimal(item.tax_rate, "tax_rate")
    if tax_rate < 0 or tax_rate > HUNDRED:
        raise InvalidLineItem(f"Tax rate must be between 0 and 100, got {tax_rate}")


def compute_line(item: LineItemInput) -> LineAmounts:
    """
    Amounts for a single line.

    Tax is charged on the pre-discount subtotal and the discount is taken off
    afterwards. The unrounded subtotal feeds the tax so that fractional
    quantities are rounded once per figure, never twice.

    Args:
        item: The line to compute. A zero quantity or price gives a zero line.

    Returns:
        LineAmounts with line_total = line_subtotal + line_tax - line_discount.
    """
    quantity = to_decimal(item.quantity, "quantity")
    unit_price = to_decimal(item.unit_price, "unit_price")
    tax_rate = to_decimal(item.tax_rate, "tax_rate")

    exact_subtotal = quantity * unit_price
    line_subtotal = round_half_up(exact_subtotal)
    line_tax = round_half_up(exact_subtotal * tax_rate / HUNDRED)
    line_discount = item.discount

    return LineAmounts(
        line_subtotal=line_subtotal,
        line_tax=line_tax,
        line_discount=line_discount,
        line_total=line_subtotal + line_tax - line_discount,
    )


def compute_totals(items: Iterable[LineItemInput]) -> InvoiceTotals:
    """Roll up every line of an invoice. An empty invoice totals zero."""
    lines: List[LineAmounts] = [compute_line(item) for item in items]

    subtotal = sum(line.line_subtotal for line in lines)
    tax_total = sum(line.line_tax for line in lines)
    discount_total = sum(line.line_discount for line in lines)

    return InvoiceTotals(
        subtotal=subtotal,
        tax_total=tax_total,
        discount_total=discount_total,
        total=subtotal + tax_total - discount_total,
    )
