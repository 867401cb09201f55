"""
Invoices module

Invoices, their line items and payments:

- calculator.py: line and invoice totals in the smallest currency unit
- reconciler.py: payment application and status derivation
- service.py: persistence, numbering, status transitions
- router.py: REST endpoints under /invoices

Tables:
- invoices: invoice headers with stored totals and a version column
- invoice_items: line items, replaced as a whole on every save
- payments: append-only payment ledger
"""

from .models import Invoice, InvoiceLineItem, Payment, InvoiceStatus, PaymentMethod
from .schemas import (
    InvoiceCreate, InvoiceOut, InvoiceDetail,
    PaymentCreate, PaymentOut
)
from .service import InvoiceService
from .router import router

__all__ = [
    "Invoice", "InvoiceLineItem", "Payment", "InvoiceStatus", "PaymentMethod",
    "InvoiceCreate", "InvoiceOut", "InvoiceDetail",
    "PaymentCreate", "PaymentOut",
    "InvoiceService",
    "router"
]
