from __future__ import annotations

from typing import Optional

import pandas as pd

from core.data import column_as_series


def match_exact(df: pd.DataFrame, field: str, value: str) -> pd.DataFrame:
    if df.empty:
        return df
    return df[column_as_series(df, field) == value]


def match_ci(df: pd.DataFrame, field: str, value: str) -> pd.DataFrame:
    """Rows whose ``field`` equals ``value`` ignoring case."""
    if df.empty:
        return df
    return df[column_as_series(df, field).str.lower() == str(value).lower()]


def first_match_ci(df: pd.DataFrame, field: str, value: str) -> Optional[pd.Series]:
    matches = match_ci(df, field, value)
    if matches.empty:
        return None
    return matches.iloc[0]


def field_value(row: pd.Series, field: str, default: str = "") -> str:
    value = row.get(field, default)
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    return str(value)
