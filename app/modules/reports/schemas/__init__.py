"""
Pydantic schemas for Reports module

Response models for the dashboard and financial report endpoints. All
amounts are integers in the smallest currency unit; ``*_formatted`` fields
are display strings in the company's currency and locale.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.modules.invoices.models import InvoiceStatus


class StatusSummary(BaseModel):
    status: InvoiceStatus
    count: int
    total: int = Field(description="Sum of invoice totals in this status")


# Dashboard
class DashboardSummaryResponse(BaseModel):
    """Headline figures for the dashboard"""
    currency: str
    total_invoices: int
    total_invoiced: int = Field(description="Sum of totals of all non-void invoices")
    total_collected: int = Field(description="Sum of amount_paid of all non-void invoices")
    outstanding: int = Field(description="Balance still due on sent and overdue invoices")
    overdue_amount: int = Field(description="Balance due on overdue invoices")
    total_invoiced_formatted: str
    total_collected_formatted: str
    outstanding_formatted: str
    overdue_amount_formatted: str
    clients_count: int
    products_count: int
    by_status: List[StatusSummary]


class MonthlyRevenueItem(BaseModel):
    month: int = Field(ge=1, le=12)
    invoiced: int = Field(description="Totals of non-void invoices issued in the month")
    collected: int = Field(description="Payments received in the month")
    invoices_count: int


class MonthlyRevenueResponse(BaseModel):
    year: int
    currency: str
    months: List[MonthlyRevenueItem]
    total_invoiced: int
    total_collected: int


# Financial
class TopClientItem(BaseModel):
    client_id: UUID
    client_name: str
    client_email: Optional[str] = None
    invoices_count: int
    total_invoiced: int
    total_paid: int
    outstanding: int
    last_invoice_date: Optional[date] = None


class TopClientsResponse(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    clients: List[TopClientItem]


class AgingBucket(BaseModel):
    label: str = Field(description="current, 1-30, 31-60, 61-90 or 90+")
    invoices_count: int
    amount: int


class AgingInvoiceItem(BaseModel):
    invoice_id: UUID
    invoice_number: str
    client_name: Optional[str] = None
    issue_date: date
    due_date: Optional[date] = None
    total: int
    amount_paid: int
    balance_due: int
    days_overdue: int
    bucket: str


class AgingReportResponse(BaseModel):
    as_of_date: date
    currency: str
    total_outstanding: int
    buckets: List[AgingBucket]
    invoices: List[AgingInvoiceItem]
