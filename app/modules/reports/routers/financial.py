"""
Financial Reports Router

FastAPI router for the top clients and receivables aging reports.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import AuthContext
from ..services.financial import FinancialReportService
from ..schemas import TopClientsResponse, AgingReportResponse
from ..utils import (
    create_csv_response,
    prepare_top_clients_csv,
    prepare_aging_csv,
    CSV_HEADERS
)


router = APIRouter(prefix="/reports/financial", tags=["Reports"])


@router.get("/top-clients", response_model=None)
async def get_top_clients(
    start_date: Optional[date] = Query(None, description="Issue date from"),
    end_date: Optional[date] = Query(None, description="Issue date to"),
    limit: int = Query(10, ge=1, le=100),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv"),
    auth_context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Clients ranked by invoiced amount."""
    if start_date and end_date and end_date < start_date:
        raise HTTPException(422, "end_date must be greater than or equal to start_date")

    service = FinancialReportService(db=db, tenant_id=auth_context.tenant_id)
    report_data = service.get_top_clients(start_date=start_date, end_date=end_date, limit=limit)

    if export == "csv":
        return create_csv_response(
            prepare_top_clients_csv(report_data), "top_clients.csv", CSV_HEADERS["top_clients"]
        )

    return TopClientsResponse(**report_data)


@router.get("/aging", response_model=None)
async def get_aging(
    as_of_date: Optional[date] = Query(None, description="As of date (default: today)"),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv"),
    auth_context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Outstanding balances bucketed by days past due."""
    service = FinancialReportService(db=db, tenant_id=auth_context.tenant_id)
    report_data = service.get_aging(as_of_date=as_of_date)

    if export == "csv":
        filename = f"aging_{report_data['as_of_date']}.csv"
        return create_csv_response(prepare_aging_csv(report_data), filename, CSV_HEADERS["aging"])

    return AgingReportResponse(**report_data)
