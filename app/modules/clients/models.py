from app.database.database import Base
from sqlalchemy import Column, String, Text, Index
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin


class Client(Base, TenantMixin, TimestampMixin):
    """A customer of the company. Invoices reference it by id."""
    __tablename__ = "clients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(100), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    invoices = relationship("Invoice", back_populates="client")

    __table_args__ = (
        Index("ix_clients_tenant_name", "tenant_id", "name"),
    )

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
