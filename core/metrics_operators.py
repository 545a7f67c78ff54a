from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.aggregate import group_sum
from core.data import DataContext, column_as_series, date_series, numeric_series, to_records
from core.errors import ComputationError, NotFoundError, computation
from core.resolve import match_exact

SCHEDULE_COLUMNS = {
    "time": "Start_Time",
    "station": "Station_Name",
    "operator": "Operator_Name",
    "product_model": "Model",
    "product_name": "Product",
    "scheduled_date": "Date",
    "po_number": "PO",
    "unit": "Units",
}

LEAVE_COLUMNS = ("from_date", "to_date", "operator_id", "operator_name", "reason", "status")


@computation
def compute_production_kpis(ctx: DataContext, *, attendance_date: str, schedule_date: str) -> Dict[str, Any]:
    """Operator/station snapshot pinned to fixed reference dates.

    Both dates are matched as literal strings against the raw fields, since
    the two datasets write dates in different formats.
    """
    attendance = ctx["attendance"]
    stations = ctx["station_schedule"]
    if attendance.empty and stations.empty:
        return {"error": "Production data not found"}

    absent = (column_as_series(attendance, "Date") == attendance_date) & (column_as_series(attendance, "Present") == "No")
    on_date = column_as_series(stations, "scheduled_date") == schedule_date
    units = numeric_series(stations, "unit", integer=True)
    return {
        "total_operators": int(column_as_series(attendance, "Operator_ID").nunique(dropna=False)) if not attendance.empty else 0,
        "absent_today": int(absent.sum()),
        "total_units_scheduled": int(units[on_date].sum()),
        "unique_products": int(column_as_series(stations, "product_name").nunique(dropna=False)) if not stations.empty else 0,
    }


def _require_schedule(ctx: DataContext, message: str) -> pd.DataFrame:
    stations = ctx["station_schedule"]
    if stations.empty:
        raise ComputationError(message)
    return stations


def compute_schedule(ctx: DataContext) -> List[Dict[str, Any]]:
    stations = _require_schedule(ctx, "Schedule file not found or corrupted")
    table = pd.DataFrame({target: column_as_series(stations, source) for source, target in SCHEDULE_COLUMNS.items()})
    return to_records(table)


def _unit_totals(ctx: DataContext, field: str, label: str, message: str) -> List[Dict[str, Any]]:
    totals = group_sum(_require_schedule(ctx, message), field, "unit", integer=True)
    return [{label: str(key), "Total_Units": int(total)} for key, total in totals.items()]


def compute_station_chart(ctx: DataContext) -> List[Dict[str, Any]]:
    return _unit_totals(ctx, "station", "station", "Chart data failed")


def compute_operator_workload(ctx: DataContext) -> List[Dict[str, Any]]:
    return _unit_totals(ctx, "operator", "operator", "Workload data failed")


def compute_attendance(ctx: DataContext) -> List[Dict[str, Any]]:
    """Attendance rows sorted by date; unparseable dates go last, ties keep file order."""
    attendance = ctx["attendance"]
    if attendance.empty:
        return []
    shift = column_as_series(attendance, "Shift")
    table = pd.DataFrame(
        {
            "date": column_as_series(attendance, "Date"),
            "operator_id": column_as_series(attendance, "Operator_ID"),
            "operator_name": column_as_series(attendance, "Operator_Name"),
            "present": column_as_series(attendance, "Present"),
            "shift": shift.where(shift != "", "Day"),
        }
    )
    order = date_series(attendance, "Date").sort_values(kind="stable", na_position="last").index
    return to_records(table.loc[order])


def compute_leaves(ctx: DataContext) -> List[Dict[str, Any]]:
    leaves = ctx["leave_requests"]
    if leaves.empty:
        return []
    return to_records(pd.DataFrame({col: column_as_series(leaves, col) for col in LEAVE_COLUMNS}))


def compute_operator_insights(ctx: DataContext) -> Dict[str, Any]:
    insights = ctx["operator_insights"]
    if insights.empty:
        return {"insights": []}
    keep = (column_as_series(insights, "operator_id") != "") & (column_as_series(insights, "ai_insight") != "")
    return {"insights": to_records(insights[keep])}


def compute_operator_insight(ctx: DataContext, operator_id: str) -> Dict[str, Any]:
    matches = match_exact(ctx["operator_insights"], "operator_id", operator_id)
    if matches.empty:
        raise NotFoundError(f"No insights found for {operator_id}", operator_id)
    return {"insights1": to_records(matches)}


def compute_operator_dropdown(ctx: DataContext) -> Dict[str, List[str]]:
    ids = column_as_series(ctx["operator_insights"], "operator_id")
    return {"operators": sorted(set(ids[ids != ""]))}
