"""
Shared pytest fixtures.

Tests run against an in-memory SQLite database that lives for a single test.
The application's ``get_db`` dependency is overridden so that API calls made
through the TestClient share the test's session.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DEBUG", "false")

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.config import settings
from app.database.database import Base, get_db
from app.modules.company.schemas import CompanyCreate
from app.modules.company import service as company_service


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def api_client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def token_factory():
    """Mint tokens shaped like the ones the hosted auth provider issues."""
    def make_token(user_id, email="owner@example.com", expires_in=timedelta(hours=1)):
        payload = {
            "sub": str(user_id),
            "email": email,
            "aud": settings.AUTH_JWT_AUDIENCE,
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)
    return make_token


@pytest.fixture
def sample_user_id():
    return uuid4()


@pytest.fixture
def sample_company(db_session, sample_user_id):
    return company_service.create_company(
        db_session,
        CompanyCreate(name="Acme Traders", email="billing@acmetraders.com", currency="PKR"),
        sample_user_id,
    )


@pytest.fixture
def auth_headers(sample_company, sample_user_id, token_factory):
    return {
        "Authorization": f"Bearer {token_factory(sample_user_id)}",
        "X-Company-ID": str(sample_company.id),
    }
