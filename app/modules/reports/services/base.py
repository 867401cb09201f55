"""
Base service class for Reports module

Provides the database session, the tenant filter and the company's display
preferences to every report service.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.common.money import format_currency
from app.core.config import settings
from app.database.database import get_tenant_query
from app.modules.company.models import CompanySettings
from app.modules.clients.models import Client
from app.modules.products.models import Product
from app.modules.invoices.models import Invoice, Payment, InvoiceStatus


class BaseReportService:
    """Base service class for all report services"""

    def __init__(self, db: Session, tenant_id: UUID):
        self.db = db
        self.tenant_id = tenant_id
        self._settings: Optional[CompanySettings] = None

    @property
    def company_settings(self) -> Optional[CompanySettings]:
        if self._settings is None:
            self._settings = self.db.query(CompanySettings).filter(
                CompanySettings.tenant_id == self.tenant_id
            ).first()
        return self._settings

    @property
    def currency(self) -> str:
        return self.company_settings.default_currency if self.company_settings else settings.DEFAULT_CURRENCY

    @property
    def locale(self) -> str:
        return self.company_settings.locale if self.company_settings else settings.DEFAULT_LOCALE

    def _today(self) -> date:
        timezone = self.company_settings.timezone if self.company_settings else settings.DEFAULT_TIMEZONE
        return datetime.now(ZoneInfo(timezone)).date()

    def _format(self, amount: int) -> str:
        return format_currency(amount, self.currency, self.locale)

    def _get_base_invoice_query(self, include_void: bool = False):
        """Get base query for invoices with tenant filtering"""
        query = get_tenant_query(self.db, Invoice, self.tenant_id)
        if not include_void:
            query = query.filter(Invoice.status != InvoiceStatus.VOID)
        return query

    def _get_base_payment_query(self):
        """Get base query for payments with tenant filtering"""
        return get_tenant_query(self.db, Payment, self.tenant_id)

    def _get_base_client_query(self):
        return get_tenant_query(self.db, Client, self.tenant_id)

    def _get_base_product_query(self):
        return get_tenant_query(self.db, Product, self.tenant_id)

    def _apply_date_filter(self, query, date_field, start_date: Optional[date], end_date: Optional[date]):
        """Apply an optional date range filter to a query"""
        if start_date and end_date:
            return query.filter(and_(date_field >= start_date, date_field <= end_date))
        if start_date:
            return query.filter(date_field >= start_date)
        if end_date:
            return query.filter(date_field <= end_date)
        return query

    def _calculate_days_difference(self, from_date: date, to_date: date = None) -> int:
        """Calculate days difference between dates"""
        if to_date is None:
            to_date = self._today()
        return (to_date - from_date).days
