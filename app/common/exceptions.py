"""
Domain errors for the invoicing core.

Every error is scoped to the single operation that raised it. Services roll
back and re-raise them; the API layer renders them through the handler
registered in ``app.main``.
"""
from fastapi import status


class InvoicingError(Exception):
    """Base class for typed invoicing failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invoicing_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.kind}


class InvalidAmount(InvoicingError):
    """Non-numeric monetary input, or a negative amount where it is disallowed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "invalid_amount"


class InvalidLineItem(InvoicingError):
    """Missing title, non-positive quantity, negative price/discount or tax rate outside [0, 100]."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "invalid_line_item"


class InvalidPayment(InvoicingError):
    """Payment amount <= 0."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "invalid_payment"


class StaleInvoiceState(InvoicingError):
    """A concurrent write changed the invoice; re-fetch and retry."""

    status_code = status.HTTP_409_CONFLICT
    kind = "stale_invoice_state"


class InvoiceLocked(InvoicingError):
    """Line items cannot change once payments exist or the invoice is closed."""

    status_code = status.HTTP_409_CONFLICT
    kind = "invoice_locked"


class InvalidInvoiceState(InvoicingError):
    """The requested transition is not allowed from the invoice's current status."""

    status_code = status.HTTP_409_CONFLICT
    kind = "invalid_invoice_state"
