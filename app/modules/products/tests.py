"""
Tests for the product catalogue.
"""

import pytest
from fastapi import HTTPException
from uuid import uuid4

from app.modules.products import service
from app.modules.products.schemas import ProductCreate, ProductUpdate
from app.modules.company import service as company_service
from app.modules.company.schemas import CompanyCreate


@pytest.fixture
def sample_product(db_session, sample_company):
    return service.create_product(
        db_session,
        ProductCreate(name="Web design", unit="hour", default_price=500000),
        sample_company.id,
    )


class TestProductService:

    def test_create_product(self, sample_product, sample_company):
        assert sample_product.tenant_id == sample_company.id
        assert sample_product.default_price == 500000

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            ProductCreate(name="Bad", default_price=-1)

    def test_search_and_pagination(self, db_session, sample_company, sample_product):
        for name in ("Hosting", "Logo design", "Domain"):
            service.create_product(db_session, ProductCreate(name=name, default_price=1000), sample_company.id)

        result = service.get_all_products(db_session, sample_company.id, search="design")
        assert result["total"] == 2
        assert [p.name for p in result["data"]] == ["Logo design", "Web design"]

        page = service.get_all_products(db_session, sample_company.id, limit=3, offset=0)
        assert page["total"] == 4
        assert page["hasNext"] is True

    def test_products_are_tenant_scoped(self, db_session, sample_product):
        other = company_service.create_company(db_session, CompanyCreate(name="Other Co"), uuid4())

        with pytest.raises(HTTPException) as exc_info:
            service.get_product_by_id(db_session, other.id, sample_product.id)
        assert exc_info.value.status_code == 404

    def test_update_and_delete(self, db_session, sample_company, sample_product):
        updated = service.update_product(
            db_session, sample_company.id, sample_product.id, ProductUpdate(default_price=450000)
        )
        assert updated.default_price == 450000
        assert updated.name == "Web design"

        service.delete_product(db_session, sample_company.id, sample_product.id)
        assert service.get_all_products(db_session, sample_company.id)["total"] == 0


class TestProductEndpoints:

    def test_create_and_list(self, api_client, auth_headers):
        response = api_client.post(
            "/products", json={"name": "Consulting", "unit": "hour", "default_price": 250000}, headers=auth_headers
        )
        assert response.status_code == 201

        listed = api_client.get("/products", headers=auth_headers).json()
        assert listed["total"] == 1
        assert listed["data"][0]["default_price"] == 250000

    def test_requires_company_header(self, api_client, auth_headers):
        response = api_client.get("/products", headers={"Authorization": auth_headers["Authorization"]})
        assert response.status_code == 400
