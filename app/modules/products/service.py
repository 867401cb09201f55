from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional
from uuid import UUID
import logging

from app.modules.products.models import Product
from app.modules.products.schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


def create_product(db: Session, data: ProductCreate, tenant_id: UUID) -> Product:
    """Create a catalogue product for the company."""
    product = Product(**data.model_dump(), tenant_id=tenant_id)
    try:
        db.add(product)
        db.commit()
        db.refresh(product)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating product: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating product: {str(e)}"
        )
    return product


def get_all_products(
    db: Session,
    tenant_id: UUID,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> dict:
    """List products by name, optionally filtered by name or description."""
    query = db.query(Product).filter(Product.tenant_id == tenant_id)

    if search:
        term = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(term), Product.description.ilike(term)))

    total = query.count()
    products = query.order_by(Product.name).offset(offset).limit(limit).all()

    return {
        "data": products,
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasNext": (offset + limit) < total,
    }


def get_product_by_id(db: Session, tenant_id: UUID, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.tenant_id == tenant_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def update_product(db: Session, tenant_id: UUID, product_id: UUID, data: ProductUpdate) -> Product:
    """Update a product. Existing invoice lines keep the price they were saved with."""
    product = get_product_by_id(db, tenant_id, product_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        if key == "name" and (value is None or not value.strip()):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product name is required")
        setattr(product, key, value)

    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, tenant_id: UUID, product_id: UUID) -> dict:
    """Delete a product. Invoice lines keep their copied title and price."""
    product = get_product_by_id(db, tenant_id, product_id)
    db.delete(product)
    db.commit()
    return {"message": "Product deleted successfully"}
