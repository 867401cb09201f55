"""
Financial Reports Service

Top clients by invoiced amount and aging of receivables.
"""

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import and_, case, desc, func

from .base import BaseReportService
from .dashboard import OPEN_STATUSES
from app.modules.clients.models import Client
from app.modules.invoices.models import Invoice, InvoiceStatus

# (label, first day overdue, last day overdue); None means open ended
AGING_BUCKETS = (
    ("current", None, 0),
    ("1-30", 1, 30),
    ("31-60", 31, 60),
    ("61-90", 61, 90),
    ("90+", 91, None),
)


def aging_bucket(days_overdue: int) -> str:
    for label, low, high in AGING_BUCKETS:
        if (low is None or days_overdue >= low) and (high is None or days_overdue <= high):
            return label
    return AGING_BUCKETS[-1][0]


class FinancialReportService(BaseReportService):
    """Service for generating financial reports"""

    def get_top_clients(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 10
    ) -> Dict:
        """Clients ranked by the total of their non-void invoices."""
        total_invoiced = func.coalesce(func.sum(Invoice.total), 0)
        outstanding = case(
            (and_(Invoice.status.in_(OPEN_STATUSES), Invoice.amount_due > 0), Invoice.amount_due),
            else_=0
        )

        query = self.db.query(
            Client.id,
            Client.name,
            Client.email,
            func.count(Invoice.id).label("invoices_count"),
            total_invoiced.label("total_invoiced"),
            func.coalesce(func.sum(Invoice.amount_paid), 0).label("total_paid"),
            func.coalesce(func.sum(outstanding), 0).label("outstanding"),
            func.max(Invoice.issue_date).label("last_invoice_date")
        ).join(
            Invoice, Invoice.client_id == Client.id
        ).filter(
            Client.tenant_id == self.tenant_id,
            Invoice.tenant_id == self.tenant_id,
            Invoice.status != InvoiceStatus.VOID
        )
        query = self._apply_date_filter(query, Invoice.issue_date, start_date, end_date)

        rows = query.group_by(Client.id, Client.name, Client.email).order_by(
            desc(total_invoiced), Client.name
        ).limit(limit).all()

        clients = []
        for row in rows:
            clients.append({
                "client_id": row.id,
                "client_name": row.name,
                "client_email": row.email,
                "invoices_count": row.invoices_count,
                "total_invoiced": int(row.total_invoiced),
                "total_paid": int(row.total_paid),
                "outstanding": int(row.outstanding),
                "last_invoice_date": row.last_invoice_date,
            })

        return {
            "period_start": start_date,
            "period_end": end_date,
            "clients": clients,
        }

    def get_aging(self, as_of_date: Optional[date] = None) -> Dict:
        """
        Outstanding balances of sent and overdue invoices, bucketed by days
        past due. Invoices without a due date, or not yet due, are "current".
        """
        as_of_date = as_of_date or self._today()

        invoices = self._get_base_invoice_query().filter(
            Invoice.status.in_((InvoiceStatus.SENT, InvoiceStatus.OVERDUE)),
            Invoice.amount_due > 0
        ).order_by(Invoice.due_date, Invoice.number).all()

        buckets = {label: {"label": label, "invoices_count": 0, "amount": 0} for label, _, _ in AGING_BUCKETS}
        items: List[Dict] = []

        for invoice in invoices:
            days_overdue = 0
            if invoice.due_date is not None:
                days_overdue = max(self._calculate_days_difference(invoice.due_date, as_of_date), 0)
            label = aging_bucket(days_overdue)

            buckets[label]["invoices_count"] += 1
            buckets[label]["amount"] += invoice.balance_due

            items.append({
                "invoice_id": invoice.id,
                "invoice_number": invoice.number,
                "client_name": invoice.client_name,
                "issue_date": invoice.issue_date,
                "due_date": invoice.due_date,
                "total": invoice.total,
                "amount_paid": invoice.amount_paid,
                "balance_due": invoice.balance_due,
                "days_overdue": days_overdue,
                "bucket": label,
            })

        return {
            "as_of_date": as_of_date,
            "currency": self.currency,
            "total_outstanding": sum(item["balance_due"] for item in items),
            "buckets": list(buckets.values()),
            "invoices": items,
        }
