"""
Tests for the clients module
"""

import pytest
from fastapi import HTTPException
from uuid import uuid4

from app.modules.clients.schemas import ClientCreate, ClientUpdate
from app.modules.clients.service import ClientService
from app.modules.company import service as company_service
from app.modules.company.schemas import CompanyCreate
from app.modules.invoices.schemas import InvoiceCreate
from app.modules.invoices.service import InvoiceService


@pytest.fixture
def client_service(db_session):
    return ClientService(db_session)


@pytest.fixture
def sample_client(client_service, sample_company):
    return client_service.create_client(
        ClientCreate(name="  Noor Enterprises ", email="finance@noor.com", phone="+92 42 1234567"),
        sample_company.id,
    )


class TestClientSchemas:

    def test_name_is_stripped(self):
        assert ClientCreate(name="  Habib Foods  ").name == "Habib Foods"

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            ClientCreate(name="   ")

    def test_invalid_email_rejected(self):
        with pytest.raises(ValueError):
            ClientCreate(name="Habib Foods", email="not-an-email")


class TestClientService:

    def test_create_client(self, sample_client, sample_company):
        assert sample_client.name == "Noor Enterprises"
        assert sample_client.tenant_id == sample_company.id

    def test_search_matches_name_or_email(self, client_service, sample_company, sample_client):
        client_service.create_client(ClientCreate(name="Habib Foods", email="ap@habib.com"), sample_company.id)
        client_service.create_client(ClientCreate(name="Khan Motors"), sample_company.id)

        assert client_service.get_clients(sample_company.id).total == 3
        assert [c.name for c in client_service.get_clients(sample_company.id, search="habib").items] == ["Habib Foods"]
        assert client_service.get_clients(sample_company.id, search="noor.com").total == 1

    def test_clients_are_tenant_scoped(self, db_session, client_service, sample_client):
        other = company_service.create_company(db_session, CompanyCreate(name="Other Co"), uuid4())

        assert client_service.get_clients(other.id).total == 0
        with pytest.raises(HTTPException) as exc_info:
            client_service.get_client_by_id(sample_client.id, other.id)
        assert exc_info.value.status_code == 404

    def test_update_client(self, client_service, sample_company, sample_client):
        updated = client_service.update_client(
            sample_client.id, ClientUpdate(address="Mall Road, Lahore"), sample_company.id
        )
        assert updated.address == "Mall Road, Lahore"
        assert updated.email == "finance@noor.com"

    def test_delete_client_without_invoices(self, client_service, sample_company, sample_client):
        client_service.delete_client(sample_client.id, sample_company.id)
        assert client_service.get_clients(sample_company.id).total == 0

    def test_delete_blocked_by_invoices(self, db_session, client_service, sample_company, sample_client):
        InvoiceService(db_session).create_invoice(InvoiceCreate(client_id=sample_client.id), sample_company.id)

        with pytest.raises(HTTPException) as exc_info:
            client_service.delete_client(sample_client.id, sample_company.id)
        assert exc_info.value.status_code == 409


class TestClientEndpoints:

    def test_create_list_update_delete(self, api_client, auth_headers):
        response = api_client.post("/clients", json={"name": "Iqbal & Sons"}, headers=auth_headers)
        assert response.status_code == 201
        client_id = response.json()["id"]

        listed = api_client.get("/clients", params={"search": "iqbal"}, headers=auth_headers).json()
        assert listed["total"] == 1

        patched = api_client.patch(f"/clients/{client_id}", json={"notes": "Net 15"}, headers=auth_headers)
        assert patched.json()["notes"] == "Net 15"

        assert api_client.delete(f"/clients/{client_id}", headers=auth_headers).status_code == 200
        assert api_client.get(f"/clients/{client_id}", headers=auth_headers).status_code == 404

    def test_requires_company_header(self, api_client, auth_headers):
        headers = {"Authorization": auth_headers["Authorization"]}
        response = api_client.get("/clients", headers=headers)
        assert response.status_code == 400

    def test_invalid_payload(self, api_client, auth_headers):
        response = api_client.post("/clients", json={"name": "Iqbal", "email": "nope"}, headers=auth_headers)
        assert response.status_code == 422
