"""
Tests for companies, their settings record and tenant access.
"""

import pytest
from fastapi import HTTPException
from uuid import uuid4
from sqlalchemy import update

from app.modules.company import service
from app.modules.company.models import CompanySettings
from app.modules.company.schemas import CompanyCreate, CompanyUpdate, SettingsUpdate


class TestCompanyService:

    def test_create_company_creates_settings(self, db_session, sample_user_id):
        company = service.create_company(db_session, CompanyCreate(name="  Lahore Supplies "), sample_user_id)

        assert company.name == "Lahore Supplies"
        assert company.created_by == sample_user_id
        settings_row = db_session.query(CompanySettings).filter_by(tenant_id=company.id).one()
        assert settings_row.numbering_prefix == "INV-"
        assert settings_row.next_number == 1
        assert settings_row.default_currency == "PKR"
        assert settings_row.timezone == "Asia/Karachi"

    def test_companies_scoped_to_owner(self, db_session, sample_company, sample_user_id):
        service.create_company(db_session, CompanyCreate(name="Someone Else"), uuid4())

        mine = service.get_companies_for_user(db_session, sample_user_id)
        assert [c.id for c in mine] == [sample_company.id]

    def test_update_company_partial(self, db_session, sample_company):
        updated = service.update_company(db_session, sample_company.id, CompanyUpdate(phone="+92 300 1234567"))
        assert updated.phone == "+92 300 1234567"
        assert updated.name == "Acme Traders"

    def test_next_number_only_moves_forward(self, db_session, sample_company):
        service.update_settings(db_session, sample_company.id, SettingsUpdate(next_number=50))

        with pytest.raises(HTTPException) as exc_info:
            service.update_settings(db_session, sample_company.id, SettingsUpdate(next_number=10))
        assert exc_info.value.status_code == 400
        assert service.get_settings(db_session, sample_company.id).next_number == 50

    def test_counter_cannot_move_back_to_a_reserved_number(self, db_session, sample_company):
        loaded = service.get_settings(db_session, sample_company.id)
        assert loaded.next_number == 1

        # A concurrent invoice creation reserves number 1 behind this session's copy
        db_session.execute(
            update(CompanySettings)
            .where(CompanySettings.tenant_id == sample_company.id)
            .values(next_number=CompanySettings.next_number + 1)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(HTTPException) as exc_info:
            service.update_settings(db_session, sample_company.id, SettingsUpdate(next_number=1))
        assert exc_info.value.status_code == 400

    def test_counter_moves_forward_with_other_fields(self, db_session, sample_company):
        updated = service.update_settings(
            db_session, sample_company.id, SettingsUpdate(next_number=7, numbering_prefix="ACM-")
        )
        assert updated.next_number == 7
        assert updated.numbering_prefix == "ACM-"

    def test_invalid_settings_values_rejected(self):
        with pytest.raises(ValueError):
            SettingsUpdate(timezone="Mars/Olympus")
        with pytest.raises(ValueError):
            SettingsUpdate(default_tax_rate=120)
        with pytest.raises(ValueError):
            SettingsUpdate(numbering_prefix="INV #")


class TestCompanyEndpoints:

    def test_create_company_requires_token(self, api_client):
        response = api_client.post("/companies", json={"name": "No Auth"})
        assert response.status_code in (401, 403)

    def test_create_and_list_companies(self, api_client, token_factory):
        user_id = uuid4()
        headers = {"Authorization": f"Bearer {token_factory(user_id)}"}

        response = api_client.post("/companies", json={"name": "Karachi Traders", "currency": "usd"}, headers=headers)
        assert response.status_code == 201
        body = response.json()
        assert body["company"]["currency"] == "USD"
        assert body["settings"]["numbering_prefix"] == "INV-"

        listed = api_client.get("/companies", headers=headers).json()
        assert [c["name"] for c in listed] == ["Karachi Traders"]

    def test_missing_company_header(self, api_client, auth_headers):
        headers = {"Authorization": auth_headers["Authorization"]}
        response = api_client.get("/company", headers=headers)
        assert response.status_code == 400

    def test_foreign_company_forbidden(self, api_client, db_session, auth_headers):
        other = service.create_company(db_session, CompanyCreate(name="Not Yours"), uuid4())
        headers = {**auth_headers, "X-Company-ID": str(other.id)}

        response = api_client.get("/company", headers=headers)
        assert response.status_code == 403

    def test_expired_token_rejected(self, api_client, sample_company, sample_user_id, token_factory):
        from datetime import timedelta
        token = token_factory(sample_user_id, expires_in=timedelta(seconds=-10))
        headers = {"Authorization": f"Bearer {token}", "X-Company-ID": str(sample_company.id)}

        response = api_client.get("/company", headers=headers)
        assert response.status_code == 401

    def test_update_settings_endpoint(self, api_client, auth_headers):
        response = api_client.patch(
            "/company/settings",
            json={"numbering_prefix": "ACME-", "default_tax_rate": "17"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["numbering_prefix"] == "ACME-"
        assert response.headers["X-Tenant-ID"] == auth_headers["X-Company-ID"]
