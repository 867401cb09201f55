"""
Invoice service.

Every write that touches money goes through the calculator (totals) or the
reconciler (payments and status), and runs in a single transaction:

- creation reserves the invoice number with an atomic counter increment
- saves replace the full item set and rewrite all four totals
- payments lock the invoice row and are checked against its version column
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy import or_, desc, func, update
from datetime import date, datetime
from typing import List, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo
import logging

from app.core.config import settings
from app.common.exceptions import (
    InvoicingError, StaleInvoiceState, InvoiceLocked, InvalidInvoiceState
)
from app.modules.company.models import CompanySettings
from app.modules.clients.models import Client
from app.modules.products.models import Product
from app.modules.invoices.models import Invoice, InvoiceLineItem, Payment, InvoiceStatus
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceFilters, LineItemCreate, PaymentCreate,
    NextInvoiceNumber, StatusCount
)
from app.modules.invoices.calculator import (
    LineItemInput, compute_line, compute_totals, validate_line_item, round_to_stored_precision,
    InvoiceTotals
)
from app.modules.invoices import reconciler

logger = logging.getLogger(__name__)

# Invoices whose line items can no longer be replaced
CLOSED_STATUSES = (InvoiceStatus.PAID, InvoiceStatus.VOID)


def format_invoice_number(prefix: str, sequence: int) -> str:
    return f"{prefix or ''}{sequence:0{settings.INVOICE_NUMBER_PADDING}d}"


def line_item_input(row: InvoiceLineItem) -> LineItemInput:
    """Calculator input for a stored line."""
    return LineItemInput(
        quantity=row.quantity,
        unit_price=row.unit_price,
        tax_rate=row.tax_rate,
        discount=row.discount,
        title=row.title,
    )


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db

    # ===== helpers =====

    def _get_settings(self, tenant_id: UUID) -> CompanySettings:
        company_settings = self.db.query(CompanySettings).filter(
            CompanySettings.tenant_id == tenant_id
        ).first()
        if not company_settings:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Company settings not found"
            )
        return company_settings

    def _today(self, tenant_id: UUID) -> date:
        """Today's date in the company's timezone."""
        company_settings = self._get_settings(tenant_id)
        return datetime.now(ZoneInfo(company_settings.timezone)).date()

    def _get_client(self, client_id: UUID, tenant_id: UUID) -> Client:
        client = self.db.query(Client).filter(
            Client.id == client_id,
            Client.tenant_id == tenant_id
        ).first()
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Client not found"
            )
        return client

    def _get_invoice_for_update(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        """Load and row-lock an invoice for the rest of the transaction."""
        invoice = self.db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.tenant_id == tenant_id
        ).with_for_update().populate_existing().first()
        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invoice not found"
            )
        return invoice

    @staticmethod
    def _check_version(invoice: Invoice, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != invoice.version:
            logger.warning(
                f"Stale write on invoice {invoice.id}: expected version {expected_version}, "
                f"found {invoice.version}"
            )
            raise StaleInvoiceState(
                f"Invoice {invoice.number} was modified (version {invoice.version}); reload and retry"
            )

    def _build_line_items(
        self,
        items: List[LineItemCreate],
        tenant_id: UUID,
        company_settings: CompanySettings
    ) -> Tuple[List[LineItemInput], List[InvoiceLineItem]]:
        """Validate the payload rows and turn them into calculator inputs and ORM rows."""
        inputs = []
        rows = []

        for position, item in enumerate(items):
            title = item.title
            unit_price = item.unit_price

            if item.product_id is not None:
                product = self.db.query(Product).filter(
                    Product.id == item.product_id,
                    Product.tenant_id == tenant_id
                ).first()
                if not product:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail=f"Product {item.product_id} not found"
                    )
                title = title or product.name
                if unit_price is None:
                    unit_price = product.default_price

            line_input = round_to_stored_precision(LineItemInput(
                quantity=item.quantity,
                unit_price=unit_price if unit_price is not None else 0,
                tax_rate=item.tax_rate if item.tax_rate is not None else company_settings.default_tax_rate,
                discount=item.discount,
                title=(title or "").strip(),
            ))
            validate_line_item(line_input)
            amounts = compute_line(line_input)

            inputs.append(line_input)
            rows.append(InvoiceLineItem(
                product_id=item.product_id,
                position=position,
                title=line_input.title,
                quantity=line_input.quantity,
                unit_price=line_input.unit_price,
                tax_rate=line_input.tax_rate,
                discount=line_input.discount,
                line_subtotal=amounts.line_subtotal,
                line_tax=amounts.line_tax,
                line_total=amounts.line_total,
            ))

        return inputs, rows

    @staticmethod
    def _apply_totals(invoice: Invoice, totals: InvoiceTotals) -> None:
        invoice.subtotal = totals.subtotal
        invoice.tax_total = totals.tax_total
        invoice.discount_total = totals.discount_total
        invoice.total = totals.total
        invoice.amount_due = totals.amount_due(invoice.amount_paid or 0)

    def _reserve_invoice_number(self, tenant_id: UUID) -> str:
        """
        Take the next sequence from the company counter.

        The increment is a single UPDATE, so concurrent creators are serialized
        by the row lock it takes and each one reads back its own value. The
        reservation commits or rolls back with the invoice that uses it.
        """
        result = self.db.execute(
            update(CompanySettings)
            .where(CompanySettings.tenant_id == tenant_id)
            .values(next_number=CompanySettings.next_number + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Company settings not found"
            )

        company_settings = self.db.query(CompanySettings).filter(
            CompanySettings.tenant_id == tenant_id
        ).populate_existing().one()
        sequence = company_settings.next_number - 1
        return format_invoice_number(company_settings.numbering_prefix, sequence)

    # ===== invoices =====

    def create_invoice(self, invoice_data: InvoiceCreate, tenant_id: UUID) -> Invoice:
        """Create an invoice with its items, totals and a freshly reserved number."""
        try:
            self._get_client(invoice_data.client_id, tenant_id)
            company_settings = self._get_settings(tenant_id)

            inputs, rows = self._build_line_items(invoice_data.items, tenant_id, company_settings)
            totals = compute_totals(inputs)
            number = self._reserve_invoice_number(tenant_id)

            invoice = Invoice(
                tenant_id=tenant_id,
                client_id=invoice_data.client_id,
                number=number,
                status=invoice_data.status,
                issue_date=invoice_data.issue_date or self._today(tenant_id),
                due_date=invoice_data.due_date,
                currency=invoice_data.currency or company_settings.default_currency,
                notes=invoice_data.notes,
                terms=invoice_data.terms,
                amount_paid=0,
            )
            self._apply_totals(invoice, totals)
            invoice.line_items = rows

            self.db.add(invoice)
            self.db.commit()
            self.db.refresh(invoice)

            logger.info(f"Invoice {invoice.number} created for company {tenant_id}, total {invoice.total}")
            return invoice

        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating invoice: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creating invoice: {str(e)}"
            )

    def update_invoice(self, invoice_id: UUID, invoice_update: InvoiceUpdate, tenant_id: UUID) -> Invoice:
        """
        Edit an invoice.

        Totals are always recomputed from the full item set, whether or not the
        items were replaced. amount_paid is never touched here.
        """
        try:
            invoice = self._get_invoice_for_update(invoice_id, tenant_id)
            self._check_version(invoice, invoice_update.expected_version)

            data = invoice_update.model_dump(exclude_unset=True, exclude={"items", "expected_version"})

            if data.get("client_id") is not None:
                self._get_client(data["client_id"], tenant_id)

            for field, value in data.items():
                if value is None and field in ("client_id", "issue_date", "currency"):
                    continue
                setattr(invoice, field, value)

            if invoice.due_date and invoice.due_date < invoice.issue_date:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Due date cannot be before the issue date"
                )

            if invoice_update.items is not None:
                has_payments = self.db.query(Payment).filter(Payment.invoice_id == invoice.id).count() > 0
                if has_payments or invoice.status in CLOSED_STATUSES:
                    raise InvoiceLocked(
                        f"Items of invoice {invoice.number} cannot change once it has payments or is {invoice.status.value}"
                    )
                company_settings = self._get_settings(tenant_id)
                inputs, rows = self._build_line_items(invoice_update.items, tenant_id, company_settings)
                invoice.line_items = rows
            else:
                inputs = [line_item_input(row) for row in invoice.line_items]

            self._apply_totals(invoice, compute_totals(inputs))

            # A pushed-back due date lifts the overdue flag
            if "due_date" in data and invoice.status == InvoiceStatus.OVERDUE:
                today = self._today(tenant_id)
                if invoice.due_date is None or invoice.due_date >= today:
                    invoice.status = InvoiceStatus.SENT

            self.db.commit()
            self.db.refresh(invoice)
            return invoice

        except StaleDataError:
            self.db.rollback()
            raise StaleInvoiceState("Invoice was modified concurrently; reload and retry")
        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating invoice {invoice_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error updating invoice: {str(e)}"
            )

    def get_invoice_by_id(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        invoice = self.db.query(Invoice).options(
            selectinload(Invoice.client),
            selectinload(Invoice.line_items),
            selectinload(Invoice.payments)
        ).filter(
            Invoice.id == invoice_id,
            Invoice.tenant_id == tenant_id
        ).first()

        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invoice not found"
            )

        return invoice

    def _filtered_query(self, tenant_id: UUID, filters: InvoiceFilters, include_status: bool = True):
        query = self.db.query(Invoice).outerjoin(Client, Invoice.client_id == Client.id).filter(
            Invoice.tenant_id == tenant_id
        )

        if include_status and filters.status:
            query = query.filter(Invoice.status == filters.status)
        if filters.client_id:
            query = query.filter(Invoice.client_id == filters.client_id)
        if filters.date_from:
            query = query.filter(Invoice.issue_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(Invoice.issue_date <= filters.date_to)
        if filters.search:
            term = f"%{filters.search}%"
            query = query.filter(or_(
                Invoice.number.ilike(term),
                Invoice.notes.ilike(term),
                Client.name.ilike(term)
            ))

        return query

    def get_invoices(
        self,
        tenant_id: UUID,
        filters: Optional[InvoiceFilters] = None,
        limit: int = 100,
        offset: int = 0
    ) -> dict:
        """
        List invoices, newest first.

        ``counts_by_status`` applies every filter except the status one, so
        the caller can render tab counters next to the list.
        """
        filters = filters or InvoiceFilters()

        query = self._filtered_query(tenant_id, filters).options(selectinload(Invoice.client))
        total = query.count()
        invoices = query.order_by(desc(Invoice.issue_date), desc(Invoice.number)).offset(offset).limit(limit).all()

        rows = self._filtered_query(tenant_id, filters, include_status=False).with_entities(
            Invoice.status, func.count(Invoice.id)
        ).group_by(Invoice.status).all()
        found = {row_status: count for row_status, count in rows}
        counts_by_status = [StatusCount(status=st, count=found.get(st, 0)) for st in InvoiceStatus]

        return {
            "invoices": invoices,
            "total": total,
            "limit": limit,
            "offset": offset,
            "counts_by_status": counts_by_status,
        }

    def delete_invoice(self, invoice_id: UUID, tenant_id: UUID) -> dict:
        """Delete a draft without payments. Its number is not handed out again."""
        try:
            invoice = self._get_invoice_for_update(invoice_id, tenant_id)
            has_payments = self.db.query(Payment).filter(Payment.invoice_id == invoice.id).count() > 0
            if invoice.status != InvoiceStatus.DRAFT or has_payments:
                raise InvalidInvoiceState("Only draft invoices without payments can be deleted; void it instead")

            number = invoice.number
            self.db.delete(invoice)
            self.db.commit()
            logger.info(f"Draft invoice {number} deleted from company {tenant_id}")
            return {"message": f"Invoice {number} deleted successfully"}

        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error deleting invoice: {str(e)}"
            )

    # ===== payments =====

    def record_payment(
        self,
        invoice_id: UUID,
        payment_data: PaymentCreate,
        tenant_id: UUID,
        today: Optional[date] = None
    ) -> Tuple[Payment, Invoice]:
        """
        Append a payment and reconcile the invoice in one transaction.

        The invoice row stays locked until commit, so a second payment for the
        same invoice reads the figures this one wrote.
        """
        try:
            invoice = self._get_invoice_for_update(invoice_id, tenant_id)
            self._check_version(invoice, payment_data.expected_version)
            today = today or self._today(tenant_id)

            result = reconciler.apply_payment(
                reconciler.InvoiceState(
                    total=invoice.total,
                    amount_paid=invoice.amount_paid,
                    status=invoice.status,
                    due_date=invoice.due_date,
                ),
                payment_data.amount,
                today,
            )

            payment = Payment(
                tenant_id=tenant_id,
                invoice_id=invoice.id,
                amount=payment_data.amount,
                method=payment_data.method,
                payment_date=payment_data.payment_date or today,
                reference=payment_data.reference,
                notes=payment_data.notes,
            )
            self.db.add(payment)

            previous_status = invoice.status
            invoice.amount_paid = result.amount_paid
            invoice.amount_due = result.amount_due
            invoice.status = result.status

            self.db.commit()

        except StaleDataError:
            self.db.rollback()
            logger.warning(f"Concurrent modification while paying invoice {invoice_id}")
            raise StaleInvoiceState("Invoice was modified concurrently; reload and retry")
        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error recording payment on invoice {invoice_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error recording payment: {str(e)}"
            )

        self.db.refresh(payment)
        self.db.refresh(invoice)
        logger.info(
            f"Payment of {payment.amount} recorded on invoice {invoice.number}: "
            f"paid {invoice.amount_paid}, due {invoice.amount_due}, "
            f"status {previous_status.value} -> {invoice.status.value}"
        )
        if result.overpaid_amount:
            logger.warning(f"Invoice {invoice.number} overpaid by {result.overpaid_amount}")
        return payment, invoice

    def get_invoice_payments(self, invoice_id: UUID, tenant_id: UUID) -> List[Payment]:
        invoice = self.db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.tenant_id == tenant_id
        ).first()

        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invoice not found"
            )

        return self.db.query(Payment).filter(
            Payment.invoice_id == invoice_id
        ).order_by(Payment.payment_date, Payment.created_at).all()

    # ===== status transitions =====

    def mark_as_paid(self, invoice_id: UUID, tenant_id: UUID, expected_version: Optional[int] = None) -> Invoice:
        """
        Settle the invoice by hand: amount_paid = total, amount_due = 0.
        No payment row is written.
        """
        try:
            invoice = self._get_invoice_for_update(invoice_id, tenant_id)
            self._check_version(invoice, expected_version)
            if invoice.status == InvoiceStatus.VOID:
                raise InvalidInvoiceState("A void invoice cannot be marked as paid")

            result = reconciler.mark_as_paid(invoice.total)
            invoice.amount_paid = result.amount_paid
            invoice.amount_due = result.amount_due
            invoice.status = result.status

            self.db.commit()
            self.db.refresh(invoice)
            logger.info(f"Invoice {invoice.number} marked as paid manually")
            return invoice

        except StaleDataError:
            self.db.rollback()
            raise StaleInvoiceState("Invoice was modified concurrently; reload and retry")
        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error marking invoice as paid: {str(e)}"
            )

    def send_invoice(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        """Issue a draft. It goes straight to overdue if its due date has passed."""
        try:
            invoice = self._get_invoice_for_update(invoice_id, tenant_id)
            if invoice.status != InvoiceStatus.DRAFT:
                raise InvalidInvoiceState(f"Only drafts can be sent; invoice is {invoice.status.value}")

            today = self._today(tenant_id)
            if invoice.due_date is not None and invoice.due_date < today:
                invoice.status = InvoiceStatus.OVERDUE
            else:
                invoice.status = InvoiceStatus.SENT

            self.db.commit()
            self.db.refresh(invoice)
            logger.info(f"Invoice {invoice.number} sent ({invoice.status.value})")
            return invoice

        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error sending invoice: {str(e)}"
            )

    def void_invoice(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        """Cancel an invoice. Paid invoices and invoices with payments stay as they are."""
        try:
            invoice = self._get_invoice_for_update(invoice_id, tenant_id)

            if invoice.status == InvoiceStatus.VOID:
                raise InvalidInvoiceState("Invoice is already void")
            if invoice.status == InvoiceStatus.PAID:
                raise InvalidInvoiceState("Paid invoices cannot be voided")
            if self.db.query(Payment).filter(Payment.invoice_id == invoice.id).count() > 0:
                raise InvalidInvoiceState("Invoices with recorded payments cannot be voided")

            invoice.status = InvoiceStatus.VOID

            self.db.commit()
            self.db.refresh(invoice)
            logger.info(f"Invoice {invoice.number} voided")
            return invoice

        except (HTTPException, InvoicingError):
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error voiding invoice: {str(e)}"
            )

    def refresh_overdue(self, tenant_id: UUID, today: Optional[date] = None) -> List[Invoice]:
        """Flag sent invoices with a balance left after their due date as overdue."""
        today = today or self._today(tenant_id)
        try:
            invoices = self.db.query(Invoice).filter(
                Invoice.tenant_id == tenant_id,
                Invoice.status == InvoiceStatus.SENT,
                Invoice.due_date.isnot(None),
                Invoice.due_date < today,
                Invoice.amount_due > 0
            ).with_for_update().all()

            for invoice in invoices:
                invoice.status = reconciler.derive_status(
                    invoice.total, invoice.amount_paid, invoice.due_date, invoice.status, today
                )

            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise StaleInvoiceState("Invoices were modified concurrently; retry the sweep")

        if invoices:
            logger.info(f"{len(invoices)} invoice(s) of company {tenant_id} flagged overdue")
        return invoices

    # ===== numbering =====

    def get_next_invoice_number(self, tenant_id: UUID) -> NextInvoiceNumber:
        """Preview the next number without reserving it."""
        company_settings = self._get_settings(tenant_id)
        return NextInvoiceNumber(
            next_number=format_invoice_number(company_settings.numbering_prefix, company_settings.next_number),
            prefix=company_settings.numbering_prefix,
            sequence=company_settings.next_number,
        )
