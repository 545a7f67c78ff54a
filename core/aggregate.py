"""Calendar bucketing and group-by sums over loaded datasets.

Weekly buckets follow ISO-8601: weeks start on Monday and the year in the
key is the ISO year, so 2024-12-30 falls in ``2025-W1``. Months run 1-12 and
quarters 1-4. A timestamp carrying a UTC offset is bucketed by its local
wall-clock date, not converted to UTC. Records whose date cannot be parsed
are left out of every bucket.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

import pandas as pd

from core.data import column_as_series, date_series, numeric_series
from core.errors import InvalidParameterError

logger = logging.getLogger(__name__)

Granularity = Literal["weekly", "monthly", "quarterly"]
GRANULARITIES = ("weekly", "monthly", "quarterly")

PERIOD_COLUMNS = ["period", "total", "count", "average"]


def period_keys(dates: pd.Series, granularity: str) -> pd.Series:
    """Map parsed (non-null) dates to ``{year}-{W|M|Q}{n}`` keys."""
    if granularity == "weekly":
        iso = dates.dt.isocalendar()
        keys = iso["year"].astype(str) + "-W" + iso["week"].astype(str)
    elif granularity == "monthly":
        keys = dates.dt.year.astype(str) + "-M" + dates.dt.month.astype(str)
    elif granularity == "quarterly":
        keys = dates.dt.year.astype(str) + "-Q" + dates.dt.quarter.astype(str)
    else:
        raise InvalidParameterError(f"Invalid granularity '{granularity}'", "granularity", str(granularity))
    return keys.rename("period")


def aggregate_periods(df: pd.DataFrame, granularity: str, date_field: str, measure_field: str) -> pd.DataFrame:
    """Sum and average ``measure_field`` per calendar period, in first-seen order."""
    if granularity not in GRANULARITIES:
        raise InvalidParameterError(f"Invalid granularity '{granularity}'", "granularity", str(granularity))

    dates = date_series(df, date_field)
    valid = dates.notna()
    if not valid.any():
        return pd.DataFrame(columns=PERIOD_COLUMNS)
    skipped = int((~valid).sum())
    if skipped:
        logger.debug("Skipped %d rows with unparseable '%s' for %s buckets", skipped, date_field, granularity)

    measure = numeric_series(df, measure_field)[valid]
    keys = period_keys(dates[valid], granularity)
    grouped = measure.groupby(keys, sort=False).agg(["sum", "count"])

    out = pd.DataFrame(
        {
            "period": grouped.index.astype(str),
            "total": grouped["sum"].to_numpy(dtype=float),
            "count": grouped["count"].to_numpy(dtype="int64"),
        }
    )
    out["average"] = out["total"] / out["count"]
    return out


def sum_by(
    keys: pd.Series,
    values: pd.Series,
    *,
    top_n: Optional[int] = None,
    sort_descending: bool = False,
) -> pd.Series:
    """Total ``values`` per distinct key.

    Keys keep first-seen order unless ``sort_descending`` is set; that sort is
    stable so equal totals stay in first-seen order. ``top_n`` truncates after
    sorting.
    """
    totals = values.groupby(keys, sort=False).sum()
    if sort_descending:
        totals = totals.sort_values(ascending=False, kind="stable")
    if top_n is not None:
        totals = totals.head(max(0, int(top_n)))
    return totals


def group_sum(
    df: pd.DataFrame,
    group_field: str,
    measure_field: Optional[str] = None,
    *,
    top_n: Optional[int] = None,
    sort_descending: bool = False,
    integer: bool = False,
) -> pd.Series:
    """Sum ``measure_field`` per value of ``group_field``; count rows when no measure is given.

    Rows with an empty or absent group field are grouped under ``""``.
    """
    keys = column_as_series(df, group_field)
    if measure_field is None:
        values = pd.Series(1, index=df.index, dtype="int64")
    else:
        values = numeric_series(df, measure_field, integer=integer)
    return sum_by(keys, values, top_n=top_n, sort_descending=sort_descending)
