from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import pandas as pd

from core.data import column_as_series


@dataclass(frozen=True)
class ForecastFilters:
    product_card_id: Optional[str] = None
    product_name: Optional[str] = None

    def predicates(self) -> Dict[str, Optional[str]]:
        return {"PRODUCT_CARD_ID": self.product_card_id, "PRODUCT_NAME": self.product_name}


@dataclass(frozen=True)
class InsightFilters(ForecastFilters):
    month: Optional[str] = None

    def predicates(self) -> Dict[str, Optional[str]]:
        return {"Month": self.month, **super().predicates()}


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s or None


def normalize_filters(raw: Mapping[str, object]) -> InsightFilters:
    """Map query-string names onto filter fields; empty strings count as absent."""
    return InsightFilters(
        product_card_id=_clean(raw.get("PRODUCT_CARD_ID")),
        product_name=_clean(raw.get("PRODUCT_NAME")),
        month=_clean(raw.get("Month")),
    )


def filter_records(df: pd.DataFrame, predicates: Optional[Mapping[str, Optional[str]]] = None) -> pd.DataFrame:
    """Keep rows where every present predicate matches its field exactly.

    Predicates whose value is None or "" are ignored. With nothing to apply
    the input frame itself is returned.
    """
    active = {f: v for f, v in (predicates or {}).items() if v is not None and v != ""}
    if not active or df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    for field_name, expected in active.items():
        mask &= column_as_series(df, field_name) == expected
    return df[mask]
