"""
Payment reconciliation.

``derive_status`` is the only place that decides an invoice's status from its
money figures. ``apply_payment`` and ``mark_as_paid`` are pure: they take the
current figures and return the new ones; persisting them is the service's job.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from app.common.exceptions import InvalidPayment, InvalidInvoiceState
from app.modules.invoices.models import InvoiceStatus


@dataclass(frozen=True)
class InvoiceState:
    total: int
    amount_paid: int
    status: InvoiceStatus
    due_date: Optional[date] = None


@dataclass(frozen=True)
class ReconciliationResult:
    amount_paid: int
    amount_due: int
    status: InvoiceStatus

    @property
    def balance_due(self) -> int:
        """Due amount clamped at zero, for display."""
        return max(self.amount_due, 0)

    @property
    def overpaid_amount(self) -> int:
        """Surplus paid beyond the total. Not tracked as credit."""
        return max(-self.amount_due, 0)


def derive_status(
    total: int,
    amount_paid: int,
    due_date: Optional[date],
    prior_status: InvoiceStatus,
    today: date,
) -> InvoiceStatus:
    """
    Status after a money event. First match wins:

    1. nothing left to pay -> paid
    2. due date has passed -> overdue
    3. was a draft -> sent (taking a payment issues the invoice)
    4. otherwise unchanged
    """
    if total - amount_paid <= 0:
        return InvoiceStatus.PAID
    if due_date is not None and due_date < today:
        return InvoiceStatus.OVERDUE
    if prior_status == InvoiceStatus.DRAFT:
        return InvoiceStatus.SENT
    return prior_status


def apply_payment(state: InvoiceState, amount: int, today: date) -> ReconciliationResult:
    """
    Apply one payment to the current invoice figures.

    Raises:
        InvalidPayment: amount is not a positive integer.
        InvalidInvoiceState: the invoice is void.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidPayment(f"Payment amount must be a positive integer, got {amount!r}")
    if state.status == InvoiceStatus.VOID:
        raise InvalidInvoiceState("Payments cannot be recorded on a void invoice")

    amount_paid = state.amount_paid + amount
    return ReconciliationResult(
        amount_paid=amount_paid,
        amount_due=state.total - amount_paid,
        status=derive_status(state.total, amount_paid, state.due_date, state.status, today),
    )


def mark_as_paid(total: int) -> ReconciliationResult:
    """Manual settlement outside the payment ledger."""
    return ReconciliationResult(amount_paid=total, amount_due=0, status=InvoiceStatus.PAID)
