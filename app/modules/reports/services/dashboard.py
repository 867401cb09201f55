"""
Dashboard Reports Service

Headline figures and month by month revenue for the dashboard.
"""

from collections import defaultdict
from datetime import date
from typing import Dict

from sqlalchemy import func

from .base import BaseReportService
from app.modules.invoices.models import Invoice, Payment, InvoiceStatus

OPEN_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.OVERDUE)


class DashboardReportService(BaseReportService):
    """Service for the dashboard summary and revenue chart"""

    def get_summary(self) -> Dict:
        """
        Counts and sums over every invoice of the company.

        Void invoices are counted in ``by_status`` but left out of every amount.
        Outstanding figures only add positive balances, so an overpaid invoice
        never reduces what other clients owe.
        """
        rows = self._get_base_invoice_query(include_void=True).with_entities(
            Invoice.status,
            func.count(Invoice.id),
            func.coalesce(func.sum(Invoice.total), 0),
            func.coalesce(func.sum(Invoice.amount_paid), 0)
        ).group_by(Invoice.status).all()

        per_status = {row_status: (count, total, paid) for row_status, count, total, paid in rows}

        total_invoiced = sum(
            total for st, (_, total, _) in per_status.items() if st != InvoiceStatus.VOID
        )
        total_collected = sum(
            paid for st, (_, _, paid) in per_status.items() if st != InvoiceStatus.VOID
        )

        balances = self._get_base_invoice_query().filter(
            Invoice.status.in_(OPEN_STATUSES),
            Invoice.amount_due > 0
        ).with_entities(Invoice.status, func.coalesce(func.sum(Invoice.amount_due), 0)).group_by(Invoice.status).all()
        balance_by_status = {row_status: int(amount) for row_status, amount in balances}

        outstanding = sum(balance_by_status.values())
        overdue_amount = balance_by_status.get(InvoiceStatus.OVERDUE, 0)

        return {
            "currency": self.currency,
            "total_invoices": sum(count for count, _, _ in per_status.values()),
            "total_invoiced": int(total_invoiced),
            "total_collected": int(total_collected),
            "outstanding": outstanding,
            "overdue_amount": overdue_amount,
            "total_invoiced_formatted": self._format(int(total_invoiced)),
            "total_collected_formatted": self._format(int(total_collected)),
            "outstanding_formatted": self._format(outstanding),
            "overdue_amount_formatted": self._format(overdue_amount),
            "clients_count": self._get_base_client_query().count(),
            "products_count": self._get_base_product_query().count(),
            "by_status": [
                {
                    "status": st,
                    "count": per_status.get(st, (0, 0, 0))[0],
                    "total": int(per_status.get(st, (0, 0, 0))[1]),
                }
                for st in InvoiceStatus
            ],
        }

    def get_monthly_revenue(self, year: int) -> Dict:
        """
        Invoiced (by issue date) against collected (by payment date) for each
        month of ``year``. Months without activity are reported as zero.
        """
        start, end = date(year, 1, 1), date(year, 12, 31)

        invoiced = defaultdict(int)
        counts = defaultdict(int)
        invoice_rows = self._apply_date_filter(
            self._get_base_invoice_query(), Invoice.issue_date, start, end
        ).with_entities(Invoice.issue_date, Invoice.total).all()
        for issue_date, total in invoice_rows:
            invoiced[issue_date.month] += total
            counts[issue_date.month] += 1

        collected = defaultdict(int)
        payment_rows = self._apply_date_filter(
            self._get_base_payment_query(), Payment.payment_date, start, end
        ).with_entities(Payment.payment_date, Payment.amount).all()
        for payment_date, amount in payment_rows:
            collected[payment_date.month] += amount

        months = [
            {
                "month": month,
                "invoiced": invoiced[month],
                "collected": collected[month],
                "invoices_count": counts[month],
            }
            for month in range(1, 13)
        ]

        return {
            "year": year,
            "currency": self.currency,
            "months": months,
            "total_invoiced": sum(invoiced.values()),
            "total_collected": sum(collected.values()),
        }
