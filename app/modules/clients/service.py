"""
Business logic for clients: tenant-scoped CRUD and search.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional
from uuid import UUID
import logging

from app.modules.clients.models import Client
from app.modules.clients.schemas import ClientCreate, ClientUpdate, ClientList
from app.modules.invoices.models import Invoice

logger = logging.getLogger(__name__)


class ClientService:
    """CRUD for the clients of one company."""

    def __init__(self, db: Session):
        self.db = db

    def create_client(self, client_data: ClientCreate, tenant_id: UUID) -> Client:
        try:
            client = Client(**client_data.model_dump(), tenant_id=tenant_id)
            self.db.add(client)
            self.db.commit()
            self.db.refresh(client)
            return client
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating client for company {tenant_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creating client: {str(e)}"
            )

    def get_clients(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> ClientList:
        """List clients ordered by name. ``search`` matches name or email."""
        query = self.db.query(Client).filter(Client.tenant_id == tenant_id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Client.name.ilike(search_term),
                    Client.email.ilike(search_term)
                )
            )

        total = query.count()
        clients = query.order_by(Client.name).offset(offset).limit(limit).all()

        return ClientList(items=clients, total=total, limit=limit, offset=offset)

    def get_client_by_id(self, client_id: UUID, tenant_id: UUID) -> Client:
        client = self.db.query(Client).filter(
            Client.id == client_id,
            Client.tenant_id == tenant_id
        ).first()

        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Client not found"
            )

        return client

    def update_client(self, client_id: UUID, client_update: ClientUpdate, tenant_id: UUID) -> Client:
        client = self.get_client_by_id(client_id, tenant_id)

        update_data = client_update.model_dump(exclude_unset=True)
        if "name" in update_data and not (update_data["name"] or "").strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Client name is required"
            )

        for field, value in update_data.items():
            setattr(client, field, value.strip() if field == "name" else value)

        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, client_id: UUID, tenant_id: UUID) -> dict:
        """
        Delete a client. Clients that already have invoices are kept, since
        deleting them would orphan the billing history.
        """
        client = self.get_client_by_id(client_id, tenant_id)

        invoice_count = self.db.query(Invoice).filter(
            Invoice.tenant_id == tenant_id,
            Invoice.client_id == client_id
        ).count()
        if invoice_count:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Client has {invoice_count} invoice(s) and cannot be deleted"
            )

        self.db.delete(client)
        self.db.commit()
        logger.info(f"Client {client_id} deleted from company {tenant_id}")
        return {"message": "Client deleted successfully"}
