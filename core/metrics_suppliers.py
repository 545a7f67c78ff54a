from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import DataContext, column_as_series, to_int, to_number, to_records
from core.errors import InvalidParameterError, NotFoundError, computation
from core.resolve import field_value, first_match_ci, match_ci, match_exact

ALTERNATE_FIELDS = ["sku_id", "supplier_name", "otd_percentage", "quality_score", "email", "location"]


def find_supplier(ctx: DataContext, supplier: str) -> pd.Series:
    """First supplier row whose name matches ignoring case."""
    row = first_match_ci(ctx["suppliers"], "Supplier_Name", supplier)
    if row is None:
        raise NotFoundError(f"{supplier} not found", supplier)
    return row


def _kpis(row: pd.Series) -> Dict[str, Any]:
    return {
        "supplier": field_value(row, "Supplier_Name"),
        "lead_time_days": to_number(field_value(row, "Lead_Time_Days")),
        "fulfillment_rate_percent": to_number(field_value(row, "Fulfillment_Rate"), percent=True),
        "otd_percent": to_number(field_value(row, "OTD_Percentage"), percent=True),
        "late_deliveries": to_int(field_value(row, "Late_Deliveries")),
        "total_orders": to_int(field_value(row, "Total_Orders")),
    }


def _metrics(row: pd.Series) -> Dict[str, Any]:
    return {
        "OTD %": to_number(field_value(row, "OTD_Percentage"), percent=True),
        "Quality Score": to_number(field_value(row, "Quality_Score")),
        "Fulfillment %": to_number(field_value(row, "Fulfillment_Rate"), percent=True),
    }


def _delivery_stats(row: pd.Series) -> Dict[str, Any]:
    total = to_int(field_value(row, "Total_Orders"))
    late = to_int(field_value(row, "Late_Deliveries"))
    return {"on_time": total - late, "late": late, "total": total}


SUPPLIER_ENDPOINTS = {
    "kpis": _kpis,
    "metrics": _metrics,
    "delivery-stats": _delivery_stats,
}


@computation
def compute_supplier_view(ctx: DataContext, endpoint: str, supplier: str) -> Dict[str, Any]:
    # The supplier is resolved before the endpoint name is checked.
    row = find_supplier(ctx, supplier)
    view = SUPPLIER_ENDPOINTS.get(endpoint)
    if view is None:
        raise InvalidParameterError(f"Unknown supplier endpoint '{endpoint}'", "endpoint", endpoint)
    return view(row)


def compute_supplier_list(ctx: DataContext) -> List[str]:
    names = column_as_series(ctx["suppliers"], "Supplier_Name")
    return sorted(set(names[names != ""]))


def compute_alternates(ctx: DataContext, supplier: str) -> List[Dict[str, Any]]:
    """Alternate suppliers sharing the named supplier's SKU.

    The name lookup ignores case; the SKU join does not.
    """
    sku = field_value(find_supplier(ctx, supplier), "SKU_No")
    rows = match_exact(ctx["alternate_suppliers"], "sku_id", sku)
    if rows.empty:
        return []
    rows = rows.reindex(columns=ALTERNATE_FIELDS)
    keep = (column_as_series(rows, "sku_id") != "") & (column_as_series(rows, "supplier_name") != "")
    return to_records(rows[keep])


def compute_supplier_insight(ctx: DataContext, identifier: str) -> Dict[str, Any]:
    """AI insight for a supplier name, falling back to a direct SKU lookup."""
    insights = ctx["supplier_insights"]
    supplier = first_match_ci(ctx["suppliers"], "Supplier_Name", identifier)
    if supplier is not None:
        sku = field_value(supplier, "SKU_No")
        by_sku = match_ci(insights, "sku_id", sku)
        if not by_sku.empty:
            return {
                "sku_id": sku,
                "supplier_name": field_value(supplier, "Supplier_Name"),
                "insight": field_value(by_sku.iloc[0], "ai_supplier_insight"),
            }

    direct = match_ci(insights, "sku_id", identifier)
    if not direct.empty:
        return {"sku_id": identifier, "insight": field_value(direct.iloc[0], "ai_supplier_insight")}
    raise NotFoundError(f"No AI insight found for {identifier}", identifier)
