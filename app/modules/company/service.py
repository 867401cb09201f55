from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from uuid import UUID
import logging

from app.core.config import settings as app_settings
from app.modules.company.schemas import CompanyCreate, CompanyUpdate, SettingsUpdate
from app.modules.company.models import Company, CompanySettings

logger = logging.getLogger(__name__)


def create_company(db: Session, company_data: CompanyCreate, user_id: UUID) -> Company:
    """
    Create a new company together with its settings record.

    The settings row carries the invoice number counter, so it is created in
    the same transaction as the company and never lazily afterwards.

    Args:
        company_data (CompanyCreate): The company data to create.
        user_id (UUID): Id of the authenticated user, recorded as the owner.

    Returns:
        Company: The created company.
    """
    try:
        company = Company(**company_data.model_dump(), created_by=user_id)
        db.add(company)
        db.flush()

        company_settings = CompanySettings(
            tenant_id=company.id,
            logo_url=company.logo_url,
            default_tax_rate=0,
            default_currency=company.currency,
            numbering_prefix=app_settings.DEFAULT_NUMBERING_PREFIX,
            next_number=1,
            locale=app_settings.DEFAULT_LOCALE,
            timezone=app_settings.DEFAULT_TIMEZONE,
        )
        db.add(company_settings)

        db.commit()
        db.refresh(company)
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not create company: {e.orig}"
        )

    logger.info(f"Company {company.id} created by user {user_id}")
    return company


def get_companies_for_user(db: Session, user_id: UUID) -> list[Company]:
    """
    Get all companies owned by a user.

    Returns:
        list[Company]: Companies ordered by creation date.
    """
    return db.query(Company).filter(
        Company.created_by == user_id
    ).order_by(Company.created_at).all()


def get_company(db: Session, tenant_id: UUID) -> Company:
    company = db.query(Company).filter(Company.id == tenant_id).first()
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


def update_company(db: Session, tenant_id: UUID, company_update: CompanyUpdate) -> Company:
    """Update the current company. Only fields present in the payload change."""
    company = get_company(db, tenant_id)

    for field, value in company_update.model_dump(exclude_unset=True).items():
        setattr(company, field, value)

    db.commit()
    db.refresh(company)
    return company


def get_settings(db: Session, tenant_id: UUID) -> CompanySettings:
    company_settings = db.query(CompanySettings).filter(
        CompanySettings.tenant_id == tenant_id
    ).first()
    if not company_settings:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company settings not found")
    return company_settings


def update_settings(db: Session, tenant_id: UUID, settings_update: SettingsUpdate) -> CompanySettings:
    """
    Update invoicing preferences.

    The number counter may only move forward: handing out a number that was
    already used would collide with an existing invoice. The row is locked and
    the counter is only written if it has not passed the new value meanwhile.
    """
    company_settings = db.query(CompanySettings).filter(
        CompanySettings.tenant_id == tenant_id
    ).with_for_update().populate_existing().first()
    if not company_settings:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company settings not found")

    data = settings_update.model_dump(exclude_unset=True)
    changed = sorted(data)
    next_number = data.pop("next_number", None)

    try:
        if next_number is not None:
            result = db.execute(
                update(CompanySettings)
                .where(
                    CompanySettings.tenant_id == tenant_id,
                    CompanySettings.next_number <= next_number
                )
                .values(next_number=next_number)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"next_number cannot go below the current value {company_settings.next_number}"
                )

        for field, value in data.items():
            if value is None and field != "logo_url":
                continue
            setattr(company_settings, field, value)

        db.commit()
    except HTTPException:
        db.rollback()
        raise

    db.refresh(company_settings)
    logger.info(f"Settings updated for company {tenant_id}: {changed}")
    return company_settings
