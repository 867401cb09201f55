"""
Tests for the invoices module

Covers:
- line and invoice totals (calculator)
- payment application and status derivation (reconciler)
- InvoiceService: numbering, total replacement, payments, transitions
- API error shapes for typed invoicing errors
"""

import pytest
from fastapi import HTTPException
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from app.common.exceptions import (
    InvalidLineItem, InvalidPayment, InvalidInvoiceState, InvoiceLocked, StaleInvoiceState
)
from app.modules.invoices.calculator import (
    LineItemInput, compute_line, compute_totals, validate_line_item, round_to_stored_precision,
    InvoiceTotals
)
from app.modules.invoices import reconciler
from app.modules.invoices.reconciler import InvoiceState, derive_status, apply_payment
from app.modules.invoices.models import InvoiceStatus, Payment, PaymentMethod
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceFilters, LineItemCreate, PaymentCreate
)
from app.modules.invoices.service import InvoiceService, format_invoice_number
from app.modules.clients.schemas import ClientCreate
from app.modules.clients.service import ClientService
from app.modules.company import service as company_service
from app.modules.company.schemas import CompanyCreate, SettingsUpdate
from app.modules.products import service as product_service
from app.modules.products.schemas import ProductCreate


TODAY = date(2025, 3, 15)
FUTURE = date.today() + timedelta(days=30)


def line(quantity, unit_price, tax_rate=0, discount=0, title="Item"):
    return LineItemInput(
        quantity=Decimal(str(quantity)),
        unit_price=unit_price,
        tax_rate=Decimal(str(tax_rate)),
        discount=discount,
        title=title,
    )


# ===== FIXTURES =====

@pytest.fixture
def sample_client(db_session, sample_company):
    return ClientService(db_session).create_client(
        ClientCreate(name="Zain Textiles", email="accounts@zaintextiles.com"),
        sample_company.id,
    )


@pytest.fixture
def invoice_service(db_session):
    return InvoiceService(db_session)


@pytest.fixture
def two_line_invoice(invoice_service, sample_company, sample_client):
    return invoice_service.create_invoice(
        InvoiceCreate(
            client_id=sample_client.id,
            due_date=FUTURE,
            items=[
                LineItemCreate(title="Setup", quantity=1, unit_price=500, tax_rate=0, discount=50),
                LineItemCreate(title="Support", quantity=3, unit_price=300, tax_rate=5),
            ],
        ),
        sample_company.id,
    )


@pytest.fixture
def sent_invoice(invoice_service, sample_company, sample_client):
    """Sent invoice for exactly 1000 due in the future."""
    return invoice_service.create_invoice(
        InvoiceCreate(
            client_id=sample_client.id,
            status=InvoiceStatus.SENT,
            due_date=FUTURE,
            items=[LineItemCreate(title="Consulting", quantity=1, unit_price=1000, tax_rate=0)],
        ),
        sample_company.id,
    )


# ===== CALCULATOR =====

class TestLineCalculator:

    def test_single_line_with_tax(self):
        amounts = compute_line(line(2, 1000, tax_rate=10))
        assert amounts.line_subtotal == 2000
        assert amounts.line_tax == 200
        assert amounts.line_discount == 0
        assert amounts.line_total == 2200

    def test_discount_applied_after_tax(self):
        first = compute_line(line(1, 500, discount=50))
        second = compute_line(line(3, 300, tax_rate=5))

        assert first.line_total == 450
        assert (second.line_subtotal, second.line_tax, second.line_total) == (900, 45, 945)

    def test_zero_quantity_or_price_is_a_zero_line(self):
        assert compute_line(line(0, 1000, tax_rate=10)).line_total == 0
        assert compute_line(line(5, 0, tax_rate=10)).line_total == 0

    def test_half_units_round_up(self):
        # 1.5 * 333 = 499.5 -> 500; tax 10% of 499.5 = 49.95 -> 50
        amounts = compute_line(line("1.5", 333, tax_rate=10))
        assert amounts.line_subtotal == 500
        assert amounts.line_tax == 50

        assert compute_line(line(1, 5, tax_rate=10)).line_tax == 1

    def test_discount_larger_than_line_is_kept(self):
        assert compute_line(line(1, 100, discount=150)).line_total == -50

    def test_repeated_computation_is_bit_identical(self):
        item = line("2.333", 1999, tax_rate="17.5", discount=7)
        results = [compute_line(item) for _ in range(3)]
        assert results[0] == results[1] == results[2]
        assert all(isinstance(value, int) for value in vars(results[0]).values())

    def test_line_total_formula(self):
        for quantity, price, rate, discount in [(1, 1, 0, 0), (7, 1234, 16, 100), (3, 99999, 100, 5)]:
            amounts = compute_line(line(quantity, price, rate, discount))
            expected = quantity * price + (quantity * price * rate) // 100 - discount
            assert amounts.line_total == expected


class TestLineValidation:

    def test_valid_line_passes(self):
        validate_line_item(line(1, 100, tax_rate=100))

    @pytest.mark.parametrize("item", [
        LineItemInput(quantity=Decimal(1), unit_price=100, title="   "),
        LineItemInput(quantity=Decimal(0), unit_price=100, title="Zero"),
        LineItemInput(quantity=Decimal(-1), unit_price=100, title="Negative"),
        LineItemInput(quantity=Decimal(1), unit_price=-1, title="Price"),
        LineItemInput(quantity=Decimal(1), unit_price=100, discount=-5, title="Discount"),
        LineItemInput(quantity=Decimal(1), unit_price=100, tax_rate=Decimal("100.01"), title="Tax"),
        LineItemInput(quantity=Decimal(1), unit_price=100, tax_rate=Decimal(-1), title="Tax"),
    ])
    def test_invalid_lines_rejected(self, item):
        with pytest.raises(InvalidLineItem):
            validate_line_item(item)


class TestStoredPrecision:

    def test_rounds_to_column_scale(self):
        item = round_to_stored_precision(line("2.0005", 100, tax_rate="7.125"))
        assert item.quantity == Decimal("2.001")
        assert item.tax_rate == Decimal("7.13")
        assert item.unit_price == 100

    def test_rounded_line_computes_like_a_reloaded_line(self):
        entered = round_to_stored_precision(line("1.0004", 1000000, tax_rate="7.125"))
        reloaded = line("1.000", 1000000, tax_rate="7.13")
        assert compute_line(entered) == compute_line(reloaded)

    def test_tiny_quantity_rounds_to_zero_and_is_rejected(self):
        with pytest.raises(InvalidLineItem):
            validate_line_item(round_to_stored_precision(line("0.0004", 100)))


class TestInvoiceAggregator:

    def test_empty_invoice_totals_zero(self):
        assert compute_totals([]) == InvoiceTotals(0, 0, 0, 0)

    def test_two_line_scenario(self):
        totals = compute_totals([line(1, 500, discount=50), line(3, 300, tax_rate=5)])
        assert totals == InvoiceTotals(subtotal=1400, tax_total=45, discount_total=50, total=1395)

    def test_total_identity_and_idempotence(self):
        items = [line(i, 100 * i + 7, tax_rate=i % 3 * 5, discount=i) for i in range(1, 8)]
        first = compute_totals(items)
        second = compute_totals(items)

        assert first == second
        assert first.total == first.subtotal + first.tax_total - first.discount_total

    def test_amount_due_may_go_negative(self):
        assert InvoiceTotals(total=1000).amount_due(1200) == -200


# ===== RECONCILER =====

class TestReconciler:

    def state(self, total=1000, paid=0, status=InvoiceStatus.SENT, due=TODAY + timedelta(days=10)):
        return InvoiceState(total=total, amount_paid=paid, status=status, due_date=due)

    def test_partial_then_full_payment(self):
        first = apply_payment(self.state(), 400, TODAY)
        assert (first.amount_paid, first.amount_due, first.status) == (400, 600, InvoiceStatus.SENT)

        second = apply_payment(self.state(paid=first.amount_paid, status=first.status), 600, TODAY)
        assert (second.amount_paid, second.amount_due, second.status) == (1000, 0, InvoiceStatus.PAID)

    def test_past_due_partial_payment_is_overdue(self):
        result = apply_payment(self.state(due=TODAY - timedelta(days=1)), 100, TODAY)
        assert result.amount_due == 900
        assert result.status == InvoiceStatus.OVERDUE

    def test_payment_issues_a_draft(self):
        result = apply_payment(self.state(status=InvoiceStatus.DRAFT), 100, TODAY)
        assert result.status == InvoiceStatus.SENT

    def test_overpayment_keeps_raw_ledger(self):
        result = apply_payment(self.state(), 1200, TODAY)
        assert result.status == InvoiceStatus.PAID
        assert result.amount_paid == 1200
        assert result.amount_due == -200
        assert result.balance_due == 0
        assert result.overpaid_amount == 200

    def test_paid_wins_over_overdue(self):
        assert derive_status(1000, 1000, TODAY - timedelta(days=5), InvoiceStatus.OVERDUE, TODAY) == InvoiceStatus.PAID

    def test_due_today_is_not_overdue(self):
        assert derive_status(1000, 0, TODAY, InvoiceStatus.SENT, TODAY) == InvoiceStatus.SENT

    @pytest.mark.parametrize("amount", [0, -100, True, 10.5])
    def test_invalid_payment_amounts(self, amount):
        with pytest.raises(InvalidPayment):
            apply_payment(self.state(), amount, TODAY)

    def test_void_invoice_rejects_payments(self):
        with pytest.raises(InvalidInvoiceState):
            apply_payment(self.state(status=InvoiceStatus.VOID), 100, TODAY)

    def test_sequential_payments_sum(self):
        amounts = [120, 75, 300, 5]
        state = self.state(total=2000)
        for amount in amounts:
            result = apply_payment(state, amount, TODAY)
            state = InvoiceState(state.total, result.amount_paid, result.status, state.due_date)

        assert state.amount_paid == sum(amounts)
        assert result.amount_due == 2000 - sum(amounts)

    def test_mark_as_paid(self):
        result = reconciler.mark_as_paid(1395)
        assert (result.amount_paid, result.amount_due, result.status) == (1395, 0, InvoiceStatus.PAID)


# ===== SERVICE =====

class TestInvoiceNumbering:

    def test_numbers_are_sequential_per_company(self, invoice_service, sample_company, sample_client):
        numbers = [
            invoice_service.create_invoice(InvoiceCreate(client_id=sample_client.id), sample_company.id).number
            for _ in range(3)
        ]
        assert numbers == ["INV-001", "INV-002", "INV-003"]
        assert invoice_service.get_next_invoice_number(sample_company.id).next_number == "INV-004"

    def test_peek_does_not_reserve(self, invoice_service, sample_company, sample_client):
        invoice_service.get_next_invoice_number(sample_company.id)
        invoice_service.get_next_invoice_number(sample_company.id)

        invoice = invoice_service.create_invoice(InvoiceCreate(client_id=sample_client.id), sample_company.id)
        assert invoice.number == "INV-001"

    def test_counters_are_independent_between_companies(self, db_session, invoice_service, sample_company, sample_client):
        other = company_service.create_company(db_session, CompanyCreate(name="Other Co"), uuid4())
        other_client = ClientService(db_session).create_client(ClientCreate(name="Other Client"), other.id)

        invoice_service.create_invoice(InvoiceCreate(client_id=sample_client.id), sample_company.id)
        invoice = invoice_service.create_invoice(InvoiceCreate(client_id=other_client.id), other.id)
        assert invoice.number == "INV-001"

    def test_prefix_and_counter_from_settings(self, db_session, invoice_service, sample_company, sample_client):
        company_service.update_settings(
            db_session, sample_company.id, SettingsUpdate(numbering_prefix="ACME-", next_number=42)
        )
        invoice = invoice_service.create_invoice(InvoiceCreate(client_id=sample_client.id), sample_company.id)
        assert invoice.number == "ACME-042"

    def test_padding_grows_past_three_digits(self):
        assert format_invoice_number("INV-", 7) == "INV-007"
        assert format_invoice_number("INV-", 1234) == "INV-1234"
        assert format_invoice_number("", 12) == "012"

    def test_failed_creation_does_not_consume_a_number(self, db_session, invoice_service, sample_company, sample_client):
        with pytest.raises(InvalidLineItem):
            invoice_service.create_invoice(
                InvoiceCreate(client_id=sample_client.id, items=[LineItemCreate(title="Bad", quantity=0, unit_price=10)]),
                sample_company.id,
            )
        assert company_service.get_settings(db_session, sample_company.id).next_number == 1

    def test_edits_do_not_touch_the_counter(self, db_session, invoice_service, sample_company, two_line_invoice):
        invoice_service.update_invoice(two_line_invoice.id, InvoiceUpdate(notes="Thanks"), sample_company.id)
        assert company_service.get_settings(db_session, sample_company.id).next_number == 2


class TestInvoiceService:

    def test_create_computes_totals(self, two_line_invoice):
        invoice = two_line_invoice
        assert (invoice.subtotal, invoice.tax_total, invoice.discount_total, invoice.total) == (1400, 45, 50, 1395)
        assert invoice.amount_paid == 0
        assert invoice.amount_due == 1395
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.currency == "PKR"
        assert [item.line_total for item in invoice.line_items] == [450, 945]
        assert invoice.version == 1

    def test_empty_invoice_is_valid(self, invoice_service, sample_company, sample_client):
        invoice = invoice_service.create_invoice(InvoiceCreate(client_id=sample_client.id), sample_company.id)
        assert invoice.total == 0
        assert invoice.line_items == []

    def test_defaults_from_product_and_settings(self, db_session, invoice_service, sample_company, sample_client):
        company_service.update_settings(db_session, sample_company.id, SettingsUpdate(default_tax_rate=Decimal("10")))
        product = product_service.create_product(
            db_session, ProductCreate(name="Hosting", default_price=1000), sample_company.id
        )

        invoice = invoice_service.create_invoice(
            InvoiceCreate(client_id=sample_client.id, items=[LineItemCreate(product_id=product.id, quantity=2)]),
            sample_company.id,
        )
        item = invoice.line_items[0]
        assert item.title == "Hosting"
        assert item.unit_price == 1000
        assert invoice.total == 2200

    def test_client_of_another_company_rejected(self, db_session, invoice_service, sample_company):
        other = company_service.create_company(db_session, CompanyCreate(name="Other Co"), uuid4())
        foreign_client = ClientService(db_session).create_client(ClientCreate(name="Foreign"), other.id)

        with pytest.raises(HTTPException) as exc_info:
            invoice_service.create_invoice(InvoiceCreate(client_id=foreign_client.id), sample_company.id)
        assert exc_info.value.status_code == 404

    def test_replacing_items_recomputes_everything(self, invoice_service, sample_company, two_line_invoice):
        updated = invoice_service.update_invoice(
            two_line_invoice.id,
            InvoiceUpdate(items=[LineItemCreate(title="Only line", quantity=2, unit_price=1000, tax_rate=10)]),
            sample_company.id,
        )
        assert len(updated.line_items) == 1
        assert (updated.subtotal, updated.tax_total, updated.discount_total, updated.total) == (2000, 200, 0, 2200)
        assert updated.amount_due == 2200
        assert updated.version == 2

    def test_header_edit_keeps_totals(self, invoice_service, sample_company, sample_client):
        invoice = invoice_service.create_invoice(
            InvoiceCreate(
                client_id=sample_client.id,
                items=[LineItemCreate(title="Retainer", quantity="1.0004", unit_price=1000000, tax_rate="7.125")],
            ),
            sample_company.id,
        )
        before = (invoice.subtotal, invoice.tax_total, invoice.total)
        assert before == (1000000, 71300, 1071300)
        assert invoice.line_items[0].quantity == Decimal("1.000")
        assert invoice.line_items[0].tax_rate == Decimal("7.13")

        updated = invoice_service.update_invoice(invoice.id, InvoiceUpdate(notes="hello"), sample_company.id)
        assert (updated.subtotal, updated.tax_total, updated.total) == before
        assert updated.amount_due == before[2]

    def test_item_edits_locked_after_payment(self, invoice_service, sample_company, sent_invoice):
        invoice_service.record_payment(sent_invoice.id, PaymentCreate(amount=100), sample_company.id)

        with pytest.raises(InvoiceLocked):
            invoice_service.update_invoice(
                sent_invoice.id,
                InvoiceUpdate(items=[LineItemCreate(title="New", quantity=1, unit_price=1)]),
                sample_company.id,
            )

        updated = invoice_service.update_invoice(sent_invoice.id, InvoiceUpdate(notes="Partially paid"), sample_company.id)
        assert updated.notes == "Partially paid"
        assert updated.amount_paid == 100
        assert updated.amount_due == 900

    def test_stale_version_rejected(self, invoice_service, sample_company, sent_invoice):
        invoice_service.update_invoice(sent_invoice.id, InvoiceUpdate(notes="bump"), sample_company.id)

        with pytest.raises(StaleInvoiceState):
            invoice_service.record_payment(
                sent_invoice.id, PaymentCreate(amount=100, expected_version=1), sample_company.id
            )
        assert invoice_service.get_invoice_payments(sent_invoice.id, sample_company.id) == []

    def test_payments_follow_reconciliation(self, invoice_service, sample_company, sent_invoice):
        payment, invoice = invoice_service.record_payment(
            sent_invoice.id, PaymentCreate(amount=400, method=PaymentMethod.BANK_TRANSFER), sample_company.id
        )
        assert payment.amount == 400
        assert (invoice.amount_paid, invoice.amount_due, invoice.status) == (400, 600, InvoiceStatus.SENT)

        _, invoice = invoice_service.record_payment(
            sent_invoice.id, PaymentCreate(amount=600, expected_version=invoice.version), sample_company.id
        )
        assert (invoice.amount_paid, invoice.amount_due, invoice.status) == (1000, 0, InvoiceStatus.PAID)

        payments = invoice_service.get_invoice_payments(sent_invoice.id, sample_company.id)
        assert sorted(p.amount for p in payments) == [400, 600]

    def test_payment_on_past_due_invoice(self, invoice_service, sample_company, sample_client):
        invoice = invoice_service.create_invoice(
            InvoiceCreate(
                client_id=sample_client.id,
                status=InvoiceStatus.SENT,
                issue_date=TODAY - timedelta(days=40),
                due_date=TODAY - timedelta(days=1),
                items=[LineItemCreate(title="Audit", quantity=1, unit_price=1000)],
            ),
            sample_company.id,
        )
        _, invoice = invoice_service.record_payment(invoice.id, PaymentCreate(amount=100), sample_company.id, today=TODAY)
        assert invoice.amount_due == 900
        assert invoice.status == InvoiceStatus.OVERDUE

    def test_invalid_payment_leaves_invoice_untouched(self, invoice_service, sample_company, sent_invoice):
        with pytest.raises(InvalidPayment):
            invoice_service.record_payment(sent_invoice.id, PaymentCreate(amount=0), sample_company.id)

        invoice = invoice_service.get_invoice_by_id(sent_invoice.id, sample_company.id)
        assert invoice.amount_paid == 0
        assert invoice.payments == []

    def test_mark_as_paid_bypasses_ledger(self, db_session, invoice_service, sample_company, two_line_invoice):
        invoice = invoice_service.mark_as_paid(two_line_invoice.id, sample_company.id)

        assert invoice.status == InvoiceStatus.PAID
        assert invoice.amount_paid == 1395
        assert invoice.amount_due == 0
        assert db_session.query(Payment).count() == 0

    def test_void_rules(self, invoice_service, sample_company, sent_invoice, two_line_invoice):
        voided = invoice_service.void_invoice(two_line_invoice.id, sample_company.id)
        assert voided.status == InvoiceStatus.VOID

        with pytest.raises(InvalidInvoiceState):
            invoice_service.void_invoice(two_line_invoice.id, sample_company.id)
        with pytest.raises(InvalidInvoiceState):
            invoice_service.record_payment(two_line_invoice.id, PaymentCreate(amount=10), sample_company.id)
        with pytest.raises(InvalidInvoiceState):
            invoice_service.mark_as_paid(two_line_invoice.id, sample_company.id)

        invoice_service.record_payment(sent_invoice.id, PaymentCreate(amount=10), sample_company.id)
        with pytest.raises(InvalidInvoiceState):
            invoice_service.void_invoice(sent_invoice.id, sample_company.id)

    def test_send_only_drafts(self, invoice_service, sample_company, two_line_invoice):
        sent = invoice_service.send_invoice(two_line_invoice.id, sample_company.id)
        assert sent.status == InvoiceStatus.SENT

        with pytest.raises(InvalidInvoiceState):
            invoice_service.send_invoice(two_line_invoice.id, sample_company.id)

    def test_delete_only_drafts(self, invoice_service, sample_company, two_line_invoice, sent_invoice):
        invoice_service.delete_invoice(two_line_invoice.id, sample_company.id)
        with pytest.raises(HTTPException):
            invoice_service.get_invoice_by_id(two_line_invoice.id, sample_company.id)

        with pytest.raises(InvalidInvoiceState):
            invoice_service.delete_invoice(sent_invoice.id, sample_company.id)

    def test_refresh_overdue(self, invoice_service, sample_company, sent_invoice, two_line_invoice):
        later = FUTURE + timedelta(days=1)
        flagged = invoice_service.refresh_overdue(sample_company.id, today=later)

        assert [invoice.id for invoice in flagged] == [sent_invoice.id]
        assert invoice_service.get_invoice_by_id(sent_invoice.id, sample_company.id).status == InvoiceStatus.OVERDUE
        assert invoice_service.get_invoice_by_id(two_line_invoice.id, sample_company.id).status == InvoiceStatus.DRAFT

        assert invoice_service.refresh_overdue(sample_company.id, today=later) == []

    def test_list_filters_and_counts(self, invoice_service, sample_company, two_line_invoice, sent_invoice):
        result = invoice_service.get_invoices(sample_company.id, InvoiceFilters(status=InvoiceStatus.SENT))
        assert result["total"] == 1
        assert result["invoices"][0].id == sent_invoice.id

        counts = {entry.status: entry.count for entry in result["counts_by_status"]}
        assert counts[InvoiceStatus.DRAFT] == 1
        assert counts[InvoiceStatus.SENT] == 1
        assert counts[InvoiceStatus.PAID] == 0

        by_client = invoice_service.get_invoices(sample_company.id, InvoiceFilters(search="Zain"))
        assert by_client["total"] == 2
        by_number = invoice_service.get_invoices(sample_company.id, InvoiceFilters(search="INV-002"))
        assert [invoice.number for invoice in by_number["invoices"]] == ["INV-002"]


# ===== API =====

class TestInvoiceEndpoints:

    def create(self, api_client, auth_headers, client_id, **overrides):
        payload = {
            "client_id": str(client_id),
            "due_date": FUTURE.isoformat(),
            "items": [{"title": "Design", "quantity": "2", "unit_price": 1000, "tax_rate": "10"}],
        }
        payload.update(overrides)
        return api_client.post("/invoices", json=payload, headers=auth_headers)

    def test_create_and_fetch(self, api_client, auth_headers, sample_client):
        response = self.create(api_client, auth_headers, sample_client.id)
        assert response.status_code == 201
        body = response.json()
        assert body["number"] == "INV-001"
        assert body["total"] == 2200
        assert body["client_name"] == "Zain Textiles"
        assert body["line_items"][0]["line_tax"] == 200

        fetched = api_client.get(f"/invoices/{body['id']}", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json()["amount_due"] == 2200

    def test_invalid_line_item_error_shape(self, api_client, auth_headers, sample_client):
        response = self.create(
            api_client, auth_headers, sample_client.id,
            items=[{"title": "Bad", "quantity": "1", "unit_price": 100, "tax_rate": "150"}],
        )
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_line_item"

    def test_payment_flow(self, api_client, auth_headers, sample_client):
        invoice = self.create(api_client, auth_headers, sample_client.id).json()

        response = api_client.post(
            f"/invoices/{invoice['id']}/payments",
            json={"amount": 2500, "method": "Bank Transfer", "reference": "TRX-1"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["payment"]["method"] == "Bank Transfer"
        assert body["invoice"]["status"] == "paid"
        assert body["invoice"]["amount_due"] == -300
        assert body["invoice"]["balance_due"] == 0
        assert body["invoice"]["overpaid_amount"] == 300

        payments = api_client.get(f"/invoices/{invoice['id']}/payments", headers=auth_headers).json()
        assert len(payments) == 1

    def test_payment_errors(self, api_client, auth_headers, sample_client):
        invoice = self.create(api_client, auth_headers, sample_client.id).json()

        response = api_client.post(f"/invoices/{invoice['id']}/payments", json={"amount": 0}, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_payment"

        response = api_client.post(
            f"/invoices/{invoice['id']}/payments",
            json={"amount": 100, "expected_version": 99},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "stale_invoice_state"

    def test_locked_items(self, api_client, auth_headers, sample_client):
        invoice = self.create(api_client, auth_headers, sample_client.id).json()
        api_client.post(f"/invoices/{invoice['id']}/mark-paid", headers=auth_headers)

        response = api_client.patch(
            f"/invoices/{invoice['id']}",
            json={"items": [{"title": "New", "quantity": "1", "unit_price": 1}]},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invoice_locked"

    def test_next_number_and_list(self, api_client, auth_headers, sample_client):
        assert api_client.get("/invoices/next-number", headers=auth_headers).json()["next_number"] == "INV-001"
        self.create(api_client, auth_headers, sample_client.id)

        listed = api_client.get("/invoices", params={"status": "draft"}, headers=auth_headers).json()
        assert listed["total"] == 1
        assert {"status": "draft", "count": 1} in listed["counts_by_status"]

    def test_other_company_invoice_not_visible(self, api_client, db_session, auth_headers, sample_client, token_factory):
        invoice = self.create(api_client, auth_headers, sample_client.id).json()

        other_user = uuid4()
        other = company_service.create_company(db_session, CompanyCreate(name="Other Co"), other_user)
        headers = {"Authorization": f"Bearer {token_factory(other_user)}", "X-Company-ID": str(other.id)}

        assert api_client.get(f"/invoices/{invoice['id']}", headers=headers).status_code == 404
