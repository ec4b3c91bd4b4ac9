"""
FieldSync Projections — CSV Exports
=====================================
Column layouts are part of the external contract:

    requests:     Material, Quantity, User, Status, RequestedAt,
                  RespondedAt, ResponseMessage, Project, TotalCost
    wastage:      Material, Requested, Consumed, Wasted, CostOfWastage
    projects:     Project, Budget, Spent, ApprovedSpending
    transactions: Material, Project, Quantity, UnitPrice, TotalCost,
                  Status, Date

Timestamps are written as YYYY-MM-DD HH:MM:SS. Report amounts have two
decimals. Prices and TotalCost keep every stored digit (two at least),
so parsing a request export gives back the stored TotalCost.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from core.primitives import Material, MaterialRequest, Project
from projections.spending import ProjectSpending, WastageRow

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

REQUEST_COLUMNS = (
    "Material", "Quantity", "User", "Status", "RequestedAt",
    "RespondedAt", "ResponseMessage", "Project", "TotalCost",
)
WASTAGE_COLUMNS = ("Material", "Requested", "Consumed", "Wasted", "CostOfWastage")
PROJECT_SPENDING_COLUMNS = ("Project", "Budget", "Spent", "ApprovedSpending")
TRANSACTION_COLUMNS = (
    "Material", "Project", "Quantity", "UnitPrice", "TotalCost", "Status", "Date",
)


def _amount(value: Decimal) -> str:
    return f"{value:.2f}"


def _exact_amount(value: Decimal) -> str:
    """At least two decimals; finer precision is written as is."""
    if value.as_tuple().exponent < -2:
        return str(value)
    return _amount(value)


def _timestamp(value: Optional[datetime]) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value is not None else "N/A"


def _write_csv(columns, rows: Iterable[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


# ══════════════════════════════════════════════════════════════
# EXPORTS
# ══════════════════════════════════════════════════════════════

def export_requests_csv(
    requests: Iterable[MaterialRequest],
    projects: Mapping[str, Project],
) -> str:
    return _write_csv(REQUEST_COLUMNS, (
        {
            "Material": r.material_name,
            "Quantity": r.quantity_requested,
            "User": r.username,
            "Status": r.status.value,
            "RequestedAt": _timestamp(r.requested_at),
            "RespondedAt": _timestamp(r.responded_at),
            "ResponseMessage": r.response_message,
            "Project": projects[r.project_id].name if r.project_id in projects else "Unknown",
            "TotalCost": _exact_amount(r.total_cost),
        }
        for r in requests
    ))


def export_wastage_csv(rows: Iterable[WastageRow]) -> str:
    return _write_csv(WASTAGE_COLUMNS, (
        {
            "Material": row.material_name,
            "Requested": row.requested,
            "Consumed": row.consumed,
            "Wasted": row.wasted,
            "CostOfWastage": _amount(row.cost_of_wastage),
        }
        for row in rows
    ))


def export_project_spending_csv(rows: Iterable[ProjectSpending]) -> str:
    return _write_csv(PROJECT_SPENDING_COLUMNS, (
        {
            "Project": row.name,
            "Budget": _amount(row.budget),
            "Spent": _amount(row.spent),
            "ApprovedSpending": _amount(row.approved_cost),
        }
        for row in rows
    ))


def export_transactions_csv(
    requests: Iterable[MaterialRequest],
    materials: Mapping[str, Material],
    projects: Mapping[str, Project],
) -> str:
    def unit_price(r: MaterialRequest) -> Decimal:
        material = materials.get(r.material_id)
        return material.price if material is not None else Decimal("0")

    return _write_csv(TRANSACTION_COLUMNS, (
        {
            "Material": r.material_name,
            "Project": (
                projects[r.project_id].name if r.project_id in projects
                else "Unknown Project"
            ),
            "Quantity": r.quantity_requested,
            "UnitPrice": _exact_amount(unit_price(r)),
            "TotalCost": _exact_amount(r.total_cost),
            "Status": r.status.value.capitalize(),
            "Date": r.requested_at.strftime(DATE_FORMAT) if r.requested_at else "N/A",
        }
        for r in requests
    ))


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

def parse_request_export(text: str) -> List[Dict[str, object]]:
    """
    Read a request export back into rows.

    Quantity comes back as int, TotalCost as Decimal, timestamps as
    naive datetimes (None for 'N/A'); other columns stay text.
    """
    reader = csv.DictReader(io.StringIO(text))
    missing = [c for c in REQUEST_COLUMNS if c not in (reader.fieldnames or [])]
    if missing:
        raise ValueError(f"Request export is missing columns: {', '.join(missing)}.")

    rows = []
    for raw in reader:
        row: Dict[str, object] = dict(raw)
        row["Quantity"] = int(raw["Quantity"])
        row["TotalCost"] = Decimal(raw["TotalCost"])
        for column in ("RequestedAt", "RespondedAt"):
            value = raw[column]
            row[column] = None if value == "N/A" else datetime.strptime(value, TIMESTAMP_FORMAT)
        rows.append(row)
    return rows
