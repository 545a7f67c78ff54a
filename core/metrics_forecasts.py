from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.aggregate import aggregate_periods
from core.data import DataContext, column_as_series, date_series, to_records
from core.errors import computation
from core.filters import ForecastFilters, InsightFilters, filter_records

DATE_FIELD = "Date"
DEMAND_FIELD = "Forecasted_Demand"


def compute_forecasts(filters: ForecastFilters, ctx: DataContext) -> List[Dict[str, Any]]:
    df = filter_records(ctx["forecasts"], filters.predicates())
    if df.empty:
        return []
    out = df.copy()
    out[DEMAND_FIELD] = pd.to_numeric(column_as_series(df, DEMAND_FIELD).str.strip(), errors="coerce")
    out[DATE_FIELD] = date_series(df, DATE_FIELD).astype(object)
    return to_records(out)


@computation
def compute_forecast_periods(filters: ForecastFilters, ctx: DataContext, *, granularity: str) -> List[Dict[str, Any]]:
    df = filter_records(ctx["forecasts"], filters.predicates())
    buckets = aggregate_periods(df, granularity, DATE_FIELD, DEMAND_FIELD)
    return [
        {"period": row.period, "total_demand": float(row.total), "average_demand": float(row.average)}
        for row in buckets.itertuples(index=False)
    ]


def compute_forecast_insights(filters: InsightFilters, ctx: DataContext) -> List[Dict[str, Any]]:
    return to_records(filter_records(ctx["forecast_insights"], filters.predicates()))


def compute_products(ctx: DataContext) -> List[Dict[str, str]]:
    df = ctx["forecasts"]
    if df.empty:
        return []
    products = pd.DataFrame(
        {
            "PRODUCT_CARD_ID": column_as_series(df, "PRODUCT_CARD_ID"),
            "PRODUCT_NAME": column_as_series(df, "PRODUCT_NAME"),
        }
    ).drop_duplicates(subset=["PRODUCT_CARD_ID"], keep="first")
    return to_records(products)
