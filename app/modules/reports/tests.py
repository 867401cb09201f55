"""
Tests for Reports module

Covers the dashboard summary, monthly revenue, top clients and aging
reports, and the CSV exports.
"""

import pytest
from datetime import date, timedelta

from app.modules.clients.schemas import ClientCreate
from app.modules.clients.service import ClientService
from app.modules.invoices.models import InvoiceStatus
from app.modules.invoices.schemas import InvoiceCreate, LineItemCreate, PaymentCreate
from app.modules.invoices.service import InvoiceService
from app.modules.reports.services import DashboardReportService, FinancialReportService
from app.modules.reports.services.financial import aging_bucket
from app.modules.reports.utils import format_csv_value


AS_OF = date(2025, 6, 30)


def make_invoice(db, tenant_id, client_id, amount, status=InvoiceStatus.SENT, issue_date=None, due_date=None):
    return InvoiceService(db).create_invoice(
        InvoiceCreate(
            client_id=client_id,
            status=status,
            issue_date=issue_date,
            due_date=due_date,
            items=[LineItemCreate(title="Services", quantity=1, unit_price=amount, tax_rate=0)],
        ),
        tenant_id,
    )


@pytest.fixture
def clients(db_session, sample_company):
    service = ClientService(db_session)
    return [
        service.create_client(ClientCreate(name="Faisal Steel"), sample_company.id),
        service.create_client(ClientCreate(name="Gulberg Bakers"), sample_company.id),
    ]


@pytest.fixture
def ledger(db_session, sample_company, clients):
    """
    One invoice per status:
    draft 1395, sent 1000 with 400 paid, overdue 2000, void 500.
    """
    tenant_id = sample_company.id
    service = InvoiceService(db_session)
    future = date.today() + timedelta(days=30)

    make_invoice(db_session, tenant_id, clients[0].id, 1395, status=InvoiceStatus.DRAFT)

    sent = make_invoice(db_session, tenant_id, clients[0].id, 1000, due_date=future)
    service.record_payment(sent.id, PaymentCreate(amount=400), tenant_id)

    make_invoice(
        db_session, tenant_id, clients[1].id, 2000,
        issue_date=date.today() - timedelta(days=60), due_date=date.today() - timedelta(days=30),
    )
    service.refresh_overdue(tenant_id)

    void = make_invoice(db_session, tenant_id, clients[1].id, 500, status=InvoiceStatus.DRAFT)
    service.void_invoice(void.id, tenant_id)


class TestDashboardReport:

    def test_summary_figures(self, db_session, sample_company, ledger):
        summary = DashboardReportService(db_session, sample_company.id).get_summary()

        assert summary["total_invoices"] == 4
        assert summary["total_invoiced"] == 4395
        assert summary["total_collected"] == 400
        assert summary["outstanding"] == 2600
        assert summary["overdue_amount"] == 2000
        assert summary["total_invoiced_formatted"] == "PKR 43.95"
        assert summary["clients_count"] == 2

        by_status = {entry["status"]: entry for entry in summary["by_status"]}
        assert by_status[InvoiceStatus.VOID]["count"] == 1
        assert by_status[InvoiceStatus.PAID]["count"] == 0
        assert by_status[InvoiceStatus.OVERDUE]["total"] == 2000

    def test_empty_company(self, db_session, sample_company):
        summary = DashboardReportService(db_session, sample_company.id).get_summary()
        assert summary["total_invoices"] == 0
        assert summary["outstanding"] == 0
        assert len(summary["by_status"]) == len(InvoiceStatus)

    def test_monthly_revenue(self, db_session, sample_company, clients):
        tenant_id = sample_company.id
        make_invoice(db_session, tenant_id, clients[0].id, 1000, issue_date=date(2024, 1, 10))
        march = make_invoice(db_session, tenant_id, clients[1].id, 2000, issue_date=date(2024, 3, 5))
        make_invoice(db_session, tenant_id, clients[1].id, 9999, issue_date=date(2023, 12, 31))
        InvoiceService(db_session).record_payment(
            march.id, PaymentCreate(amount=500, payment_date=date(2024, 3, 20)), tenant_id
        )

        report = DashboardReportService(db_session, tenant_id).get_monthly_revenue(2024)

        assert len(report["months"]) == 12
        assert report["months"][0]["invoiced"] == 1000
        assert report["months"][2] == {"month": 3, "invoiced": 2000, "collected": 500, "invoices_count": 1}
        assert report["total_invoiced"] == 3000
        assert report["total_collected"] == 500

    def test_dashboard_endpoint(self, api_client, auth_headers, ledger):
        response = api_client.get("/reports/dashboard", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["currency"] == "PKR"
        assert body["outstanding"] == 2600


class TestFinancialReports:

    @pytest.mark.parametrize("days, label", [
        (0, "current"), (1, "1-30"), (30, "1-30"), (31, "31-60"),
        (60, "31-60"), (61, "61-90"), (90, "61-90"), (91, "90+"), (400, "90+"),
    ])
    def test_aging_buckets(self, days, label):
        assert aging_bucket(days) == label

    def test_aging_report(self, db_session, sample_company, clients):
        tenant_id = sample_company.id
        for amount, days_past_due in ((100, -5), (200, 10), (300, 45), (400, 100)):
            due = AS_OF - timedelta(days=days_past_due)
            make_invoice(db_session, tenant_id, clients[0].id, amount, issue_date=due - timedelta(days=10), due_date=due)
        make_invoice(db_session, tenant_id, clients[1].id, 700, status=InvoiceStatus.DRAFT)

        report = FinancialReportService(db_session, tenant_id).get_aging(as_of_date=AS_OF)

        assert report["total_outstanding"] == 1000
        buckets = {bucket["label"]: bucket for bucket in report["buckets"]}
        assert buckets["current"]["amount"] == 100
        assert buckets["1-30"]["amount"] == 200
        assert buckets["31-60"]["amount"] == 300
        assert buckets["61-90"]["invoices_count"] == 0
        assert buckets["90+"]["amount"] == 400
        assert [item["days_overdue"] for item in report["invoices"]] == [100, 45, 10, 0]

    def test_partially_paid_invoice_ages_by_balance(self, db_session, sample_company, clients):
        tenant_id = sample_company.id
        invoice = make_invoice(
            db_session, tenant_id, clients[0].id, 1000,
            issue_date=AS_OF - timedelta(days=40), due_date=AS_OF - timedelta(days=20),
        )
        InvoiceService(db_session).record_payment(invoice.id, PaymentCreate(amount=250), tenant_id, today=AS_OF)

        report = FinancialReportService(db_session, tenant_id).get_aging(as_of_date=AS_OF)
        assert report["invoices"][0]["balance_due"] == 750
        assert report["invoices"][0]["bucket"] == "1-30"

    def test_top_clients(self, db_session, sample_company, clients):
        tenant_id = sample_company.id
        first = make_invoice(db_session, tenant_id, clients[0].id, 1000)
        make_invoice(db_session, tenant_id, clients[0].id, 500)
        make_invoice(db_session, tenant_id, clients[1].id, 3000)
        voided = make_invoice(db_session, tenant_id, clients[0].id, 10000, status=InvoiceStatus.DRAFT)
        service = InvoiceService(db_session)
        service.void_invoice(voided.id, tenant_id)
        service.record_payment(first.id, PaymentCreate(amount=1000), tenant_id)

        report = FinancialReportService(db_session, tenant_id).get_top_clients()

        assert [c["client_name"] for c in report["clients"]] == ["Gulberg Bakers", "Faisal Steel"]
        faisal = report["clients"][1]
        assert faisal["invoices_count"] == 2
        assert faisal["total_invoiced"] == 1500
        assert faisal["total_paid"] == 1000
        assert faisal["outstanding"] == 500

    def test_top_clients_outstanding_matches_dashboard(self, db_session, sample_company, clients):
        tenant_id = sample_company.id
        service = InvoiceService(db_session)
        make_invoice(db_session, tenant_id, clients[0].id, 700, status=InvoiceStatus.DRAFT)
        overpaid = make_invoice(db_session, tenant_id, clients[0].id, 1000)
        service.record_payment(overpaid.id, PaymentCreate(amount=1200), tenant_id)
        make_invoice(db_session, tenant_id, clients[0].id, 500)

        report = FinancialReportService(db_session, tenant_id).get_top_clients()
        dashboard = DashboardReportService(db_session, tenant_id).get_summary()

        faisal = report["clients"][0]
        assert faisal["total_invoiced"] == 2200
        assert faisal["total_paid"] == 1200
        assert faisal["outstanding"] == 500
        assert dashboard["outstanding"] == 500

    def test_aging_csv_export(self, api_client, auth_headers, db_session, sample_company, clients):
        make_invoice(
            db_session, sample_company.id, clients[0].id, 12345,
            issue_date=AS_OF - timedelta(days=40), due_date=AS_OF - timedelta(days=35),
        )

        response = api_client.get(
            "/reports/financial/aging",
            params={"as_of_date": AS_OF.isoformat(), "export": "csv"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("Invoice Number,Client,Issue Date,Due Date,Total")
        assert "123.45" in lines[1]
        assert lines[1].endswith("31-60")

    def test_top_clients_rejects_inverted_range(self, api_client, auth_headers):
        response = api_client.get(
            "/reports/financial/top-clients",
            params={"start_date": "2025-02-01", "end_date": "2025-01-01"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_format_csv_value(self):
        assert format_csv_value(None) == ""
        assert format_csv_value(date(2025, 1, 2)) == "2025-01-02"
        assert format_csv_value(InvoiceStatus.OVERDUE) == "overdue"
