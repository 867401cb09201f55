from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime
from decimal import Decimal
from app.common.validators import (
    validate_currency_code, validate_locale_tag, validate_timezone,
    validate_numbering_prefix, validate_phone
)


def _check_currency(v):
    if v is None:
        return v
    if not validate_currency_code(v):
        raise ValueError('Currency must be a three letter code such as PKR or USD')
    return v.upper()


def _check_phone(v):
    if v and not validate_phone(v):
        raise ValueError('Invalid phone number')
    return v


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    tax_id: Optional[str] = Field(None, max_length=50)
    currency: str = Field(default="PKR")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Company name is required')
        return v.strip()

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        return _check_currency(v)

    @field_validator('phone')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    tax_id: Optional[str] = Field(None, max_length=50)
    currency: Optional[str] = None

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        return _check_currency(v)

    @field_validator('phone')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)


class CompanyOut(BaseModel):
    id: UUID
    name: str
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tax_id: Optional[str] = None
    currency: str
    created_by: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsOut(BaseModel):
    tenant_id: UUID
    logo_url: Optional[str] = None
    default_tax_rate: Decimal
    default_currency: str
    numbering_prefix: str
    next_number: int
    locale: str
    timezone: str

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    logo_url: Optional[str] = None
    default_tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    default_currency: Optional[str] = None
    numbering_prefix: Optional[str] = None
    next_number: Optional[int] = Field(None, ge=1, description="Only moves the counter forward")
    locale: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator('default_currency')
    @classmethod
    def validate_currency(cls, v):
        return _check_currency(v)

    @field_validator('numbering_prefix')
    @classmethod
    def validate_prefix(cls, v):
        if v is not None and not validate_numbering_prefix(v):
            raise ValueError('Prefix may contain up to 20 letters, digits, "-", "_" or "/"')
        return v

    @field_validator('locale')
    @classmethod
    def validate_locale(cls, v):
        if v is not None and not validate_locale_tag(v):
            raise ValueError('Locale must look like "en" or "en-PK"')
        return v

    @field_validator('timezone')
    @classmethod
    def validate_tz(cls, v):
        if v is not None and not validate_timezone(v):
            raise ValueError('Unknown timezone')
        return v


class CompanyWithSettings(BaseModel):
    company: CompanyOut
    settings: SettingsOut
