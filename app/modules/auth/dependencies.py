"""
Authentication dependencies for FastAPI.

Sign-up, sign-in and password flows belong to the hosted auth provider. This
service only verifies the bearer tokens that provider issues and resolves the
company (tenant) the caller is acting for.
"""
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt
import logging

from app.database.database import get_db
from app.modules.auth.schemas import AuthContext
from app.modules.company.models import Company
from app.core.config import settings

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer()


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and audience of a provider-issued token."""
    options = {"verify_aud": bool(settings.AUTH_JWT_AUDIENCE)}
    return jwt.decode(
        token,
        settings.AUTH_JWT_SECRET,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        audience=settings.AUTH_JWT_AUDIENCE or None,
        options=options,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthContext:
    """
    Identity of the caller, without tenant context (for endpoints such as
    company creation that run before a company exists).
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        return AuthContext(user_id=UUID(user_id), email=payload.get("email"))
    except (jwt.PyJWTError, ValueError):
        logger.warning("Rejected bearer token")
        raise credentials_exception


def get_auth_context(
    request: Request,
    user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> AuthContext:
    """
    Full context with tenant. The company comes from the X-Company-ID header
    (parsed by TenantMiddleware) and must belong to the caller.
    """
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant context not found. Ensure X-Company-ID header is provided."
        )

    company = db.query(Company).filter(
        Company.id == tenant_id,
        Company.created_by == user.user_id
    ).first()
    if not company:
        logger.warning(f"User {user.user_id} denied access to company {tenant_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this company"
        )

    return AuthContext(user_id=user.user_id, email=user.email, tenant_id=company.id)


CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
TenantContext = Annotated[AuthContext, Depends(get_auth_context)]
