"""
Client endpoints. All of them are scoped to the company in X-Company-ID.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import AuthContext
from app.modules.clients.service import ClientService
from app.modules.clients.schemas import ClientCreate, ClientUpdate, ClientOut, ClientList
from app.core.config import settings

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
    responses={404: {"description": "Not found"}}
)


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """
    Create a client

    - **name**: client or business name (required)
    - **email**, **phone**, **address**, **notes**: optional
    """
    return ClientService(db).create_client(client_data, auth_context.tenant_id)


@router.get("", response_model=ClientList)
async def get_clients(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Search by name or email"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return ClientService(db).get_clients(auth_context.tenant_id, limit=limit, offset=offset, search=search)


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return ClientService(db).get_client_by_id(client_id, auth_context.tenant_id)


@router.patch("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: UUID,
    client_update: ClientUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return ClientService(db).update_client(client_id, client_update, auth_context.tenant_id)


@router.delete("/{client_id}")
async def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """Delete a client that has no invoices."""
    return ClientService(db).delete_client(client_id, auth_context.tenant_id)
