from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, max_length=30, description="Unit of measure, e.g. pcs or hour")
    default_price: int = Field(0, ge=0, description="Price in the smallest currency unit (12.50 -> 1250)")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Product name is required')
        return v.strip()


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, max_length=30)
    default_price: Optional[int] = Field(None, ge=0)


class ProductOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    unit: Optional[str] = None
    default_price: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaginatedProductResponse(BaseModel):
    data: List[ProductOut]
    total: int
    limit: int
    offset: int
    hasNext: bool
