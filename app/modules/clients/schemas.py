from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from app.common.validators import validate_phone


class ClientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Client or business name")
    email: Optional[EmailStr] = Field(None, description="Billing email")
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Client name is required')
        return v.strip()

    @field_validator('phone')
    @classmethod
    def validate_phone_number(cls, v):
        if v and not validate_phone(v):
            raise ValueError('Invalid phone number')
        return v


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('phone')
    @classmethod
    def validate_phone_number(cls, v):
        if v and not validate_phone(v):
            raise ValueError('Invalid phone number')
        return v


class ClientOut(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientList(BaseModel):
    items: List[ClientOut]
    total: int
    limit: int
    offset: int
