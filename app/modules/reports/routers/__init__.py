"""
Routers package for Reports module

Exports all report router instances for easy importing.
"""

from .dashboard import router as dashboard_router
from .financial import router as financial_router

__all__ = [
    "dashboard_router",
    "financial_router"
]
