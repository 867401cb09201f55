from fastapi import APIRouter, status

from app.modules.company import service
from app.modules.company.schemas import (
    CompanyCreate, CompanyOut, CompanyUpdate, SettingsOut, SettingsUpdate, CompanyWithSettings
)
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import CurrentUser, TenantContext


# Routes without tenant context: the caller may not have a company yet
companies_router = APIRouter(prefix="/companies", tags=["Companies"])

# Routes for the company selected through X-Company-ID
company_router = APIRouter(prefix="/company", tags=["Companies"])


@companies_router.post("", response_model=CompanyWithSettings, status_code=status.HTTP_201_CREATED)
async def create_company(company: CompanyCreate, db: db_dependency, current_user: CurrentUser):
    """
    Create a company owned by the current user. Its settings record
    (numbering prefix, counter, defaults) is created alongside.
    """
    created = service.create_company(db, company, current_user.user_id)
    return CompanyWithSettings(
        company=CompanyOut.model_validate(created),
        settings=SettingsOut.model_validate(created.settings),
    )


@companies_router.get("", response_model=list[CompanyOut])
async def get_my_companies(db: db_dependency, current_user: CurrentUser):
    """Companies owned by the current user."""
    return service.get_companies_for_user(db, current_user.user_id)


@company_router.get("", response_model=CompanyOut)
async def get_company(db: db_dependency, auth_context: TenantContext):
    return service.get_company(db, auth_context.tenant_id)


@company_router.patch("", response_model=CompanyOut)
async def update_company(company_update: CompanyUpdate, db: db_dependency, auth_context: TenantContext):
    return service.update_company(db, auth_context.tenant_id, company_update)


@company_router.get("/settings", response_model=SettingsOut)
async def get_settings(db: db_dependency, auth_context: TenantContext):
    return service.get_settings(db, auth_context.tenant_id)


@company_router.patch("/settings", response_model=SettingsOut)
async def update_settings(settings_update: SettingsUpdate, db: db_dependency, auth_context: TenantContext):
    """
    Update numbering prefix, next number, default tax rate, currency,
    locale and timezone.
    """
    return service.update_settings(db, auth_context.tenant_id, settings_update)
