from app.database.database import Base
from sqlalchemy import Column, String, BigInteger, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin


class Product(Base, TenantMixin, TimestampMixin):
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String(30), nullable=True)  # pcs, hour, kg...
    default_price = Column(BigInteger, nullable=False, default=0)  # smallest currency unit

    __table_args__ = (
        Index("ix_products_tenant_name", "tenant_id", "name"),
    )
