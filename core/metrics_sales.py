from __future__ import annotations

from typing import Any, Callable, Dict

import pandas as pd

from core.aggregate import group_sum, sum_by
from core.data import DataContext, column_as_series, date_series, numeric_series, round_half_up
from core.errors import InvalidParameterError, computation

SALES_FIELD = "Sales"


@computation
def compute_sales_kpis(ctx: DataContext) -> Dict[str, Any]:
    df = ctx["sales"]
    if df.empty:
        return {"error": "Sales data not found"}

    discount = numeric_series(df, "Order Item Discount Rate")
    return {
        "total_orders": int(column_as_series(df, "Order Item Id").nunique(dropna=False)),
        "total_sales": round_half_up(numeric_series(df, SALES_FIELD).sum(), 2),
        "avg_discount": round_half_up(discount.mean() * 100, 2),
        "late_deliveries": int((column_as_series(df, "Late_delivery_risk") == "1").sum()),
    }


def _pair(series: pd.Series, key_name: str, value_name: str) -> Dict[str, list]:
    return {key_name: [str(k) for k in series.index], value_name: series.tolist()}


def _city_sales(df: pd.DataFrame) -> Dict[str, list]:
    return _pair(group_sum(df, "Customer City", SALES_FIELD, top_n=10, sort_descending=True), "cities", "sales")


def _category_distribution(df: pd.DataFrame) -> Dict[str, list]:
    return _pair(group_sum(df, "Category Name", SALES_FIELD), "categories", "sales")


def _monthly_sales(df: pd.DataFrame) -> Dict[str, list]:
    dates = date_series(df, "order date (DateOrders)")
    valid = dates.notna()
    keys = dates[valid].dt.strftime("%Y-%m").rename("month")
    totals = sum_by(keys, numeric_series(df, SALES_FIELD)[valid]).sort_index()
    return _pair(totals, "months", "sales")


def _shipping_mode(df: pd.DataFrame) -> Dict[str, list]:
    return _pair(group_sum(df, "Shipping Mode"), "modes", "counts")


def _region_sales(df: pd.DataFrame) -> Dict[str, list]:
    return _pair(group_sum(df, "Order Region", SALES_FIELD, sort_descending=True), "regions", "sales")


def _top_products(df: pd.DataFrame) -> Dict[str, list]:
    return _pair(group_sum(df, "Product Name", SALES_FIELD, top_n=5, sort_descending=True), "products", "sales")


SALES_METRICS: Dict[str, Callable[[pd.DataFrame], Dict[str, list]]] = {
    "city-sales": _city_sales,
    "category-distribution": _category_distribution,
    "monthly-sales": _monthly_sales,
    "shipping-mode": _shipping_mode,
    "region-sales": _region_sales,
    "top-products": _top_products,
}


@computation
def compute_sales_metric(ctx: DataContext, metric: str) -> Dict[str, Any]:
    df = ctx["sales"]
    if df.empty:
        return {"error": "Data not loaded"}
    handler = SALES_METRICS.get(metric)
    if handler is None:
        raise InvalidParameterError(f"Invalid metric '{metric}'", "metric", metric)
    return handler(df)
