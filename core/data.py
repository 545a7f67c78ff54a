from __future__ import annotations

import logging
import math
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_datetime64_any_dtype

from core.errors import LoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatasetSpec:
    name: str
    files: Tuple[str, ...]
    columns: Tuple[str, ...] = ()


DATASETS: Tuple[DatasetSpec, ...] = (
    DatasetSpec("forecasts", ("all_pump_forecasts.csv",), ("Date", "Forecasted_Demand", "PRODUCT_CARD_ID", "PRODUCT_NAME")),
    DatasetSpec("forecast_insights", ("groq_bullet_monthly_insights.csv",), ("Month", "PRODUCT_CARD_ID", "PRODUCT_NAME")),
    DatasetSpec(
        "sales",
        ("Pump_Data.csv",),
        (
            "Order Item Id",
            "Sales",
            "Order Item Discount Rate",
            "Late_delivery_risk",
            "Customer City",
            "Category Name",
            "order date (DateOrders)",
            "Shipping Mode",
            "Order Region",
            "Product Name",
        ),
    ),
    DatasetSpec("stock_levels", ("total_stock_levels_updated.csv",), ("SKU_No", "Stock_On_Hand", "In_Transit", "Lead_Time_Days")),
    DatasetSpec("alerts", ("total_demo_sku_inventory_alerts.csv",), ("SKU_No", "Available", "Reorder_Point", "Supplier")),
    DatasetSpec("schedule", ("total_production_schedule.csv",), ("Scheduled_Quantity",)),
    DatasetSpec("bom", ("bom_data.csv",)),
    DatasetSpec("mrp_plan", ("total_mrp_plan_updated.csv",)),
    DatasetSpec("production_orders", ("total_production_orders.csv",)),
    DatasetSpec(
        "station_schedule",
        ("total_station_schedule_updated.csv",),
        ("time", "station", "operator", "product_model", "product_name", "scheduled_date", "po_number", "unit"),
    ),
    DatasetSpec("procurement", ("smart_procurement_insights_dec2017.csv",), ("SKU_ID",)),
    DatasetSpec("attendance", ("attendance_log.csv",), ("Date", "Operator_ID", "Operator_Name", "Present")),
    DatasetSpec(
        "leave_requests",
        ("leave_requests_january.csv", "leave_requests_february.csv"),
        ("from_date", "to_date", "operator_id", "operator_name", "reason", "status"),
    ),
    DatasetSpec("operator_insights", ("groq_operator_jan_feb_insights.csv",), ("operator_id", "ai_insight")),
    DatasetSpec(
        "suppliers",
        ("suppliers.csv",),
        ("Supplier_Name", "SKU_No", "Lead_Time_Days", "Fulfillment_Rate", "OTD_Percentage", "Late_Deliveries", "Total_Orders", "Quality_Score"),
    ),
    DatasetSpec(
        "alternate_suppliers",
        ("alternate_suppliers.csv",),
        ("sku_id", "supplier_name", "otd_percentage", "quality_score", "email", "location"),
    ),
    DatasetSpec("supplier_insights", ("ai_supplier_insight_output.csv",), ("sku_id", "ai_supplier_insight")),
    DatasetSpec("monthly_insights", ("groq_monthly_insights.csv",)),
    DatasetSpec("quarterly_insights", ("groq_quarterly_regional_insights.csv",)),
    DatasetSpec("yearly_insights", ("groq_yearly_regional_insights.csv",)),
)

DATASET_NAMES: Tuple[str, ...] = tuple(spec.name for spec in DATASETS)


@dataclass(frozen=True)
class DataContext:
    """Every loaded dataset, keyed by name. Read-only once built."""

    datasets: Mapping[str, pd.DataFrame] = field(default_factory=dict)
    data_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "datasets", MappingProxyType(dict(self.datasets)))

    def get(self, name: str) -> pd.DataFrame:
        frame = self.datasets.get(name)
        if frame is None:
            return pd.DataFrame()
        return frame

    __getitem__ = get

    def row_counts(self) -> Dict[str, int]:
        return {name: int(len(self.get(name))) for name in DATASET_NAMES}

    @classmethod
    def from_records(cls, tables: Mapping[str, Iterable[Mapping[str, str]]], data_dir: Optional[Path] = None) -> "DataContext":
        """Build a context from plain row dicts; absent cells become empty strings."""
        datasets = {}
        for name, rows in tables.items():
            rows = list(rows)
            datasets[name] = pd.DataFrame(rows, dtype=object).fillna("") if rows else pd.DataFrame()
        return cls(datasets=datasets, data_dir=data_dir)


# ---------------- Loaders ----------------
def read_csv_records(path: Path) -> pd.DataFrame:
    """Read a CSV keeping every cell as the raw string from the file."""
    return pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")


def load_dataset(spec: DatasetSpec, data_dir: Path) -> pd.DataFrame:
    frames: List[pd.DataFrame] = []
    for filename in spec.files:
        path = Path(data_dir) / filename
        try:
            frames.append(read_csv_records(path))
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise LoadError(f"Failed to load '{spec.name}' from {path}: {exc}", dataset=spec.name, path=str(path)) from exc

    df = frames[0] if len(frames) == 1 else pd.concat(frames, ignore_index=True).fillna("")
    missing = [c for c in spec.columns if c not in df.columns]
    if missing:
        logger.warning("Dataset '%s' is missing expected fields: %s", spec.name, ", ".join(missing))
    logger.info("Loaded dataset '%s' (%d rows)", spec.name, len(df))
    return df


def load_context(data_dir: Path, *, workers: int = 8, catalogue: Iterable[DatasetSpec] = DATASETS) -> DataContext:
    """Load every dataset concurrently. Any failure aborts the whole load."""
    specs = list(catalogue)
    with ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="dataset-load") as pool:
        futures = {spec.name: pool.submit(load_dataset, spec, data_dir) for spec in specs}
        datasets = {name: future.result() for name, future in futures.items()}
    logger.info("All %d datasets loaded from %s", len(datasets), data_dir)
    return DataContext(datasets=datasets, data_dir=Path(data_dir))


# ---------------- Field coercion ----------------
def column_as_series(df: pd.DataFrame, col: str) -> pd.Series:
    """Return a column as strings; an absent column reads as all-empty."""
    if col not in df.columns:
        return pd.Series("", index=df.index, dtype=object)
    val = df[col]
    if isinstance(val, pd.DataFrame):
        val = val.iloc[:, 0]
    return val.where(val.notna(), "").astype(str)


def to_number(raw: object, default: float = 0.0, *, percent: bool = False) -> float:
    if raw is None:
        return default
    text = str(raw).strip()
    if percent:
        text = text.rstrip("%").strip()
    try:
        value = float(text)
    except ValueError:
        return default
    if math.isnan(value) or math.isinf(value):
        return default
    return value


def to_int(raw: object, default: int = 0) -> int:
    value = to_number(raw, float("nan"))
    if math.isnan(value):
        return default
    return int(value)


def to_date(raw: object) -> pd.Timestamp:
    """Parse one date to a naive timestamp; anything unparseable becomes NaT.

    A UTC offset is dropped rather than applied, so the value keeps its local
    wall-clock time.
    """
    if raw is None:
        return pd.NaT
    text = str(raw).strip()
    if not text:
        return pd.NaT
    value = pd.to_datetime(text, errors="coerce")
    if value is pd.NaT:
        return pd.NaT
    if value.tzinfo is not None:
        value = value.tz_localize(None)
    return value


def numeric_series(
    df: pd.DataFrame,
    col: str,
    default: float = 0.0,
    *,
    percent: bool = False,
    integer: bool = False,
) -> pd.Series:
    """Vectorised to_number / to_int over one column."""
    text = column_as_series(df, col).str.strip()
    if percent:
        text = text.str.rstrip("%").str.strip()
    values = pd.to_numeric(text, errors="coerce").astype(float)
    values = values.where(np.isfinite(values))
    if integer:
        return np.trunc(values).fillna(default).astype("int64")
    return values.fillna(default)


def date_series(df: pd.DataFrame, col: str) -> pd.Series:
    """Vectorised to_date over one column, with the same wall-clock rule for offsets."""
    text = column_as_series(df, col).str.strip()
    if text.empty:
        return pd.Series(pd.NaT, index=text.index, dtype="datetime64[ns]")
    with warnings.catch_warnings():
        # pandas 2 warns on mixed offsets before returning plain objects.
        warnings.simplefilter("ignore", FutureWarning)
        try:
            parsed = pd.to_datetime(text, errors="coerce", format="mixed")
        except ValueError:
            parsed = None
    if parsed is None or not is_datetime64_any_dtype(parsed):
        # Offsets differ between rows: parse each distinct value on its own.
        lookup = {value: to_date(value) for value in pd.unique(text)}
        return pd.to_datetime(text.map(lookup))
    if isinstance(parsed.dtype, pd.DatetimeTZDtype):
        return parsed.dt.tz_localize(None)
    return parsed


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def to_records(df: pd.DataFrame) -> List[Dict[str, object]]:
    if df.empty:
        return []
    return df.to_dict(orient="records")
