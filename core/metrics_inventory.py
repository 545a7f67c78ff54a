from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.aggregate import group_sum
from core.data import DataContext, column_as_series, numeric_series, round_half_up, to_records
from core.errors import InvalidParameterError, computation

# Raw dumps reachable under /api/inventory/{dataset}.
INVENTORY_DATASETS = ("stock_levels", "alerts", "bom", "mrp_plan", "production_orders", "schedule", "station_schedule")


def _below_reorder(alerts: pd.DataFrame) -> pd.DataFrame:
    if alerts.empty:
        return alerts
    available = numeric_series(alerts, "Available", integer=True)
    reorder = numeric_series(alerts, "Reorder_Point", integer=True)
    return alerts[available < reorder]


@computation
def compute_inventory_kpis(ctx: DataContext) -> Dict[str, Any]:
    stock = ctx["stock_levels"]
    if stock.empty:
        return {"error": "Inventory data not found"}

    return {
        "total_skus": int(column_as_series(stock, "SKU_No").nunique(dropna=False)),
        "total_stock_on_hand": int(numeric_series(stock, "Stock_On_Hand", integer=True).sum()),
        "in_transit": int(numeric_series(stock, "In_Transit", integer=True).sum()),
        "below_reorder_point": int(len(_below_reorder(ctx["alerts"]))),
        "avg_lead_time": round_half_up(numeric_series(stock, "Lead_Time_Days").mean(), 2),
        "scheduled_qty": int(numeric_series(ctx["schedule"], "Scheduled_Quantity", integer=True).sum()),
    }


@computation
def compute_reorder_chart(ctx: DataContext) -> List[Dict[str, Any]]:
    alerts = ctx["alerts"]
    chart = pd.DataFrame(
        {
            "SKU_No": column_as_series(alerts, "SKU_No"),
            "Available": numeric_series(alerts, "Available", integer=True),
            "Reorder_Point": numeric_series(alerts, "Reorder_Point", integer=True),
        }
    )
    return to_records(chart)


@computation
def compute_lead_times(ctx: DataContext) -> List[Dict[str, Any]]:
    stock = ctx["stock_levels"]
    lead = pd.DataFrame(
        {
            "SKU_No": column_as_series(stock, "SKU_No"),
            "Lead_Time_Days": numeric_series(stock, "Lead_Time_Days"),
        }
    )
    return to_records(lead)


@computation
def compute_supplier_alerts(ctx: DataContext) -> List[Dict[str, Any]]:
    counts = group_sum(_below_reorder(ctx["alerts"]), "Supplier")
    return [{"Supplier": str(supplier), "Alert_Count": int(count)} for supplier, count in counts.items()]


def get_inventory_dataset(ctx: DataContext, dataset: str) -> List[Dict[str, Any]]:
    if dataset not in INVENTORY_DATASETS:
        raise InvalidParameterError(f"Invalid dataset '{dataset}'", "dataset", dataset)
    return to_records(ctx[dataset])
