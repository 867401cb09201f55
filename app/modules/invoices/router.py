from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import AuthContext
from app.modules.invoices.service import InvoiceService
from app.modules.invoices.models import InvoiceStatus
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceOut, InvoiceDetail, InvoiceList, InvoiceUpdate, InvoiceFilters,
    PaymentCreate, PaymentOut, PaymentRecorded, NextInvoiceNumber, OverdueRefreshResult
)

# Main router of the invoices module
router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_data: InvoiceCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """
    Create an invoice

    The number is reserved from the company counter. Amounts are integers in
    the smallest currency unit; line items default their title and price from
    the referenced product and their tax rate from the company settings.
    """
    service = InvoiceService(db)
    return service.create_invoice(invoice_data, auth_context.tenant_id)


@router.get("", response_model=InvoiceList)
def list_invoices(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    date_from: Optional[date] = Query(None, description="Issue date from (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Issue date to (YYYY-MM-DD)"),
    client_id: Optional[UUID] = Query(None),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Search by number, notes or client name"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """List invoices with filters and per-status counts."""
    service = InvoiceService(db)
    filters = InvoiceFilters(
        status=status_filter,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
        search=search
    )
    return service.get_invoices(auth_context.tenant_id, filters, limit, offset)


@router.get("/next-number", response_model=NextInvoiceNumber)
def get_next_invoice_number(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """Preview of the number the next invoice will get. Nothing is reserved."""
    return InvoiceService(db).get_next_invoice_number(auth_context.tenant_id)


@router.post("/refresh-overdue", response_model=OverdueRefreshResult)
def refresh_overdue(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """Flag sent invoices past their due date as overdue."""
    invoices = InvoiceService(db).refresh_overdue(auth_context.tenant_id)
    return OverdueRefreshResult(updated=len(invoices), invoice_ids=[invoice.id for invoice in invoices])


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return InvoiceService(db).get_invoice_by_id(invoice_id, auth_context.tenant_id)


@router.patch("/{invoice_id}", response_model=InvoiceDetail)
def update_invoice(
    invoice_id: UUID,
    invoice_update: InvoiceUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """
    Update an invoice

    Sending ``items`` replaces every line item and is refused (409) once the
    invoice has payments or is paid/void.
    """
    return InvoiceService(db).update_invoice(invoice_id, invoice_update, auth_context.tenant_id)


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return InvoiceService(db).delete_invoice(invoice_id, auth_context.tenant_id)


@router.post("/{invoice_id}/payments", response_model=PaymentRecorded, status_code=status.HTTP_201_CREATED)
def record_payment(
    invoice_id: UUID,
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """
    Record a payment

    Updates amount_paid, amount_due and status in the same transaction.
    Overpayment is accepted: amount_due goes negative, balance_due stays 0
    and overpaid_amount reports the surplus.
    """
    payment, invoice = InvoiceService(db).record_payment(invoice_id, payment_data, auth_context.tenant_id)
    return PaymentRecorded(
        payment=PaymentOut.model_validate(payment),
        invoice=InvoiceOut.model_validate(invoice),
    )


@router.get("/{invoice_id}/payments", response_model=List[PaymentOut])
def get_invoice_payments(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return InvoiceService(db).get_invoice_payments(invoice_id, auth_context.tenant_id)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceOut)
def mark_invoice_as_paid(
    invoice_id: UUID,
    expected_version: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """Settle the invoice without recording a payment."""
    return InvoiceService(db).mark_as_paid(invoice_id, auth_context.tenant_id, expected_version)


@router.post("/{invoice_id}/send", response_model=InvoiceOut)
def send_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return InvoiceService(db).send_invoice(invoice_id, auth_context.tenant_id)


@router.post("/{invoice_id}/void", response_model=InvoiceOut)
def void_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return InvoiceService(db).void_invoice(invoice_id, auth_context.tenant_id)
