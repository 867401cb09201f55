"""
Reports Module

Read-only aggregations over invoices, payments, clients and products. The
module owns no tables.

- routers/ -> FastAPI endpoints
- services/ -> query building and aggregation
- schemas/ -> Pydantic response models
- utils/ -> CSV export helpers
"""

from .routers import dashboard_router, financial_router

__all__ = [
    "dashboard_router",
    "financial_router"
]
