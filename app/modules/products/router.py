from fastapi import APIRouter, status, Depends, Query
from uuid import UUID
from typing import Optional
from sqlalchemy.orm import Session
from app.database.database import get_db
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import AuthContext
from app.modules.products import service
from app.modules.products.schemas import ProductCreate, ProductUpdate, ProductOut, PaginatedProductResponse
from app.core.config import settings

product_router = APIRouter(prefix="/products", tags=["Products"])


@product_router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    """Create a new product. ``default_price`` is in the smallest currency unit."""
    return service.create_product(db, data, auth_context.tenant_id)


@product_router.get("", response_model=PaginatedProductResponse)
async def list_products(
    search: Optional[str] = Query(None, description="Search by name or description"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return service.get_all_products(db, auth_context.tenant_id, search=search, limit=limit, offset=offset)


@product_router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return service.get_product_by_id(db, auth_context.tenant_id, product_id)


@product_router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return service.update_product(db, auth_context.tenant_id, product_id, data)


@product_router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    return service.delete_product(db, auth_context.tenant_id, product_id)
