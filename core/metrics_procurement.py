from __future__ import annotations

from typing import Any, Dict, List

from core.data import DataContext, to_records
from core.errors import NotFoundError
from core.resolve import match_exact


def compute_procurement_insights(ctx: DataContext) -> List[Dict[str, Any]]:
    return to_records(ctx["procurement"])


def compute_procurement_insight(ctx: DataContext, sku_id: str) -> List[Dict[str, Any]]:
    matches = match_exact(ctx["procurement"], "SKU_ID", sku_id)
    if matches.empty:
        raise NotFoundError(f"No insight found for SKU {sku_id}", sku_id)
    return to_records(matches)
