from __future__ import annotations

from typing import Any, Dict, List

from core.data import DataContext, to_records
from core.errors import InvalidParameterError

PERIOD_DATASETS = {
    "monthly": "monthly_insights",
    "quarterly": "quarterly_insights",
    "yearly": "yearly_insights",
}


def compute_period_insights(ctx: DataContext, period: str) -> List[Dict[str, Any]]:
    dataset = PERIOD_DATASETS.get(period)
    if dataset is None:
        raise InvalidParameterError(f"Invalid period '{period}'", "period", period)
    return to_records(ctx[dataset])
