"""
Utilities for Reports module

CSV export for the tabular reports.
"""

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List

from fastapi import Response

from app.common.money import format_amount


def create_csv_response(
    data: List[Dict[str, Any]],
    filename: str,
    headers: Dict[str, str] = None
) -> Response:
    """
    Create a CSV response from a list of dictionaries.

    Args:
        data: List of dictionaries with report data
        filename: Name for the CSV file
        headers: Optional mapping of field names to CSV headers

    Returns:
        FastAPI Response with CSV content
    """
    fieldnames = list(headers.keys()) if headers else (list(data[0].keys()) if data else [])
    csv_headers = list(headers.values()) if headers else fieldnames

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
    writer.writerow(dict(zip(fieldnames, csv_headers)))
    for row in data:
        writer.writerow({key: format_csv_value(value) for key, value in row.items()})

    csv_content = output.getvalue()
    output.close()

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Content-Type": "text/csv; charset=utf-8"
        }
    )


def format_csv_value(value: Any) -> str:
    """Format a value for CSV export."""
    if value is None:
        return ""
    elif isinstance(value, bool):
        return "Yes" if value else "No"
    elif isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, (date, datetime)):
        return value.isoformat()
    elif hasattr(value, "value"):
        return str(value.value)
    else:
        return str(value)


def prepare_top_clients_csv(report_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Prepare top clients data for CSV export. Amounts in major units."""
    csv_data = []
    for client in report_data["clients"]:
        csv_data.append({
            "client_name": client["client_name"],
            "client_email": client.get("client_email"),
            "invoices_count": client["invoices_count"],
            "total_invoiced": format_amount(client["total_invoiced"]),
            "total_paid": format_amount(client["total_paid"]),
            "outstanding": format_amount(client["outstanding"]),
            "last_invoice_date": client.get("last_invoice_date"),
        })
    return csv_data


def prepare_aging_csv(report_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Prepare aging data for CSV export. Amounts in major units."""
    csv_data = []
    for invoice in report_data["invoices"]:
        csv_data.append({
            "invoice_number": invoice["invoice_number"],
            "client_name": invoice["client_name"],
            "issue_date": invoice["issue_date"],
            "due_date": invoice["due_date"],
            "total": format_amount(invoice["total"]),
            "amount_paid": format_amount(invoice["amount_paid"]),
            "balance_due": format_amount(invoice["balance_due"]),
            "days_overdue": invoice["days_overdue"],
            "bucket": invoice["bucket"],
        })
    return csv_data


CSV_HEADERS = {
    "top_clients": {
        "client_name": "Client",
        "client_email": "Email",
        "invoices_count": "Invoices",
        "total_invoiced": "Total Invoiced",
        "total_paid": "Total Paid",
        "outstanding": "Outstanding",
        "last_invoice_date": "Last Invoice",
    },
    "aging": {
        "invoice_number": "Invoice Number",
        "client_name": "Client",
        "issue_date": "Issue Date",
        "due_date": "Due Date",
        "total": "Total",
        "amount_paid": "Paid",
        "balance_due": "Balance Due",
        "days_overdue": "Days Overdue",
        "bucket": "Bucket",
    },
}
