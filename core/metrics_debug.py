from __future__ import annotations

from typing import Any, Dict

from core.data import DATASETS, DataContext


def compute_debug(ctx: DataContext) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "data_dir": str(ctx.data_dir) if ctx.data_dir is not None else None,
        "row_counts": ctx.row_counts(),
        "missing_fields": {},
    }
    for spec in DATASETS:
        df = ctx[spec.name]
        missing = [c for c in spec.columns if c not in df.columns]
        if missing:
            payload["missing_fields"][spec.name] = missing
    return payload
