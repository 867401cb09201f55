from app.database.database import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid


class Company(Base):
    """A tenant. Every client, product, invoice and payment belongs to one."""
    __tablename__ = "companies"

    id = Column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    logo_url = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(100), nullable=True)
    tax_id = Column(String(50), nullable=True)
    currency = Column(String(3), nullable=False, default="PKR")
    # User id issued by the hosted auth provider
    created_by = Column(UUID(as_uuid=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    settings = relationship("CompanySettings", back_populates="company", uselist=False,
                            cascade="all, delete-orphan")


class CompanySettings(Base):
    """Per-tenant invoicing preferences, including the invoice number counter."""
    __tablename__ = "settings"

    tenant_id = Column(UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True)
    logo_url = Column(String, nullable=True)
    default_tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    default_currency = Column(String(3), nullable=False, default="PKR")
    numbering_prefix = Column(String(20), nullable=False, default="INV-")
    # Next sequence to hand out; only ever changed by an atomic increment
    next_number = Column(Integer, nullable=False, default=1)
    locale = Column(String(20), nullable=False, default="en-PK")
    timezone = Column(String(64), nullable=False, default="Asia/Karachi")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    company = relationship("Company", back_populates="settings")
