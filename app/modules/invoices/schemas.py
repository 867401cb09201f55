from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.modules.invoices.models import InvoiceStatus, PaymentMethod
from app.common.validators import validate_currency_code


# ===== LINE ITEMS =====

class LineItemCreate(BaseModel):
    """
    One invoice row. Range checks (positive quantity, tax rate 0-100...) are
    done by the service so they surface as invalid_line_item errors.
    """
    product_id: Optional[UUID] = Field(None, description="Catalogue product; fills title and price when omitted")
    title: Optional[str] = Field(None, max_length=200)
    quantity: Decimal = Field(..., description="Units, decimals allowed (e.g. 1.5 hours)")
    unit_price: Optional[int] = Field(None, description="Smallest currency unit; defaults to the product price")
    tax_rate: Optional[Decimal] = Field(None, description="Percent 0-100; defaults to the company rate")
    discount: int = Field(0, description="Absolute amount taken off the line, smallest unit")


class LineItemOut(BaseModel):
    id: UUID
    product_id: Optional[UUID] = None
    position: int
    title: str
    quantity: Decimal
    unit_price: int
    tax_rate: Decimal
    discount: int
    line_subtotal: int
    line_tax: int
    line_total: int

    class Config:
        from_attributes = True


# ===== INVOICES =====

class InvoiceCreate(BaseModel):
    client_id: UUID
    issue_date: Optional[date] = Field(None, description="Defaults to today")
    due_date: Optional[date] = None
    currency: Optional[str] = Field(None, description="Defaults to the company currency")
    notes: Optional[str] = None
    terms: Optional[str] = None
    status: InvoiceStatus = Field(InvoiceStatus.DRAFT, description="draft or sent")
    items: List[LineItemCreate] = Field(default_factory=list)

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        if v is not None and not validate_currency_code(v):
            raise ValueError('Currency must be a three letter code')
        return v.upper() if v else v

    @field_validator('status')
    @classmethod
    def validate_initial_status(cls, v):
        if v not in (InvoiceStatus.DRAFT, InvoiceStatus.SENT):
            raise ValueError('New invoices start as draft or sent')
        return v

    @model_validator(mode='after')
    def validate_dates(self):
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError('Due date cannot be before the issue date')
        return self


class InvoiceUpdate(BaseModel):
    """
    Header fields are always editable. ``items`` replaces the whole item set
    and is refused once the invoice has payments or is paid/void.
    """
    client_id: Optional[UUID] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[LineItemCreate]] = None
    expected_version: Optional[int] = Field(None, description="Reject the edit if the invoice changed since this version")

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        if v is not None and not validate_currency_code(v):
            raise ValueError('Currency must be a three letter code')
        return v.upper() if v else v


class InvoiceOut(BaseModel):
    id: UUID
    number: str
    client_id: UUID
    client_name: Optional[str] = None
    status: InvoiceStatus
    issue_date: date
    due_date: Optional[date] = None
    currency: str
    notes: Optional[str] = None
    terms: Optional[str] = None
    subtotal: int
    tax_total: int
    discount_total: int
    total: int
    amount_paid: int
    amount_due: int
    balance_due: int
    overpaid_amount: int
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentOut(BaseModel):
    id: UUID
    invoice_id: UUID
    amount: int
    method: PaymentMethod
    reference: Optional[str] = None
    payment_date: date
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceDetail(InvoiceOut):
    line_items: List[LineItemOut] = []
    payments: List[PaymentOut] = []


class StatusCount(BaseModel):
    status: InvoiceStatus
    count: int


class InvoiceFilters(BaseModel):
    status: Optional[InvoiceStatus] = None
    client_id: Optional[UUID] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None


class InvoiceList(BaseModel):
    invoices: List[InvoiceOut]
    total: int
    limit: int
    offset: int
    counts_by_status: List[StatusCount]


# ===== PAYMENTS =====

class PaymentCreate(BaseModel):
    amount: int = Field(..., description="Smallest currency unit, must be positive")
    method: PaymentMethod = PaymentMethod.CASH
    payment_date: Optional[date] = Field(None, description="Defaults to today")
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    expected_version: Optional[int] = Field(None, description="Reject the payment if the invoice changed since this version")


class PaymentRecorded(BaseModel):
    payment: PaymentOut
    invoice: InvoiceOut


# ===== NUMBERING / MAINTENANCE =====

class NextInvoiceNumber(BaseModel):
    next_number: str
    prefix: str
    sequence: int


class OverdueRefreshResult(BaseModel):
    updated: int
    invoice_ids: List[UUID]
