from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ForecastFiltersModel(BaseModel):
    PRODUCT_CARD_ID: Optional[str] = None
    PRODUCT_NAME: Optional[str] = None


class InsightFiltersModel(ForecastFiltersModel):
    Month: Optional[str] = None
