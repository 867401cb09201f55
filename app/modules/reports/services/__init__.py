"""
Services package for Reports module

Exports all report service classes for easy importing.
"""

from .dashboard import DashboardReportService
from .financial import FinancialReportService

__all__ = [
    "DashboardReportService",
    "FinancialReportService"
]
