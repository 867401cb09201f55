"""
Dashboard Reports Router
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import AuthContext
from ..services.dashboard import DashboardReportService
from ..schemas import DashboardSummaryResponse, MonthlyRevenueResponse


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardSummaryResponse)
async def get_dashboard_summary(
    auth_context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Counts by status, invoiced, collected, outstanding and overdue amounts."""
    service = DashboardReportService(db=db, tenant_id=auth_context.tenant_id)
    return DashboardSummaryResponse(**service.get_summary())


@router.get("/monthly-revenue", response_model=MonthlyRevenueResponse)
async def get_monthly_revenue(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Calendar year (default: current year)"),
    auth_context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Invoiced vs collected amounts for each month of the year."""
    service = DashboardReportService(db=db, tenant_id=auth_context.tenant_id)
    return MonthlyRevenueResponse(**service.get_monthly_revenue(year or service._today().year))
