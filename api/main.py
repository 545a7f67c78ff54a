from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas import ForecastFiltersModel, InsightFiltersModel
from core.config import Settings, configure_logging
from core.data import DataContext, load_context
from core.errors import AnalyticsError, ComputationError, InvalidParameterError, NotFoundError
from core.filters import InsightFilters, normalize_filters
from core.metrics_debug import compute_debug
from core.metrics_forecasts import compute_forecast_insights, compute_forecast_periods, compute_forecasts, compute_products
from core.metrics_insights import compute_period_insights
from core.metrics_inventory import (
    compute_inventory_kpis,
    compute_lead_times,
    compute_reorder_chart,
    compute_supplier_alerts,
    get_inventory_dataset,
)
from core.metrics_operators import (
    compute_attendance,
    compute_leaves,
    compute_operator_dropdown,
    compute_operator_insight,
    compute_operator_insights,
    compute_operator_workload,
    compute_production_kpis,
    compute_schedule,
    compute_station_chart,
)
from core.metrics_procurement import compute_procurement_insight, compute_procurement_insights
from core.metrics_sales import compute_sales_kpis, compute_sales_metric
from core.metrics_suppliers import (
    compute_alternates,
    compute_supplier_insight,
    compute_supplier_list,
    compute_supplier_view,
)


logger = logging.getLogger(__name__)
router = APIRouter()

HEALTH_MESSAGE = "✅ SCM analytics API is up and running!"


def _filters_from_model(model: ForecastFiltersModel) -> InsightFilters:
    return normalize_filters(model.model_dump())


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def get_context(request: Request) -> DataContext:
    return request.app.state.context


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/")
def health():
    return _json({"message": HEALTH_MESSAGE})


# ---------------- Forecasts ----------------
@router.get("/api/forecasts")
def forecasts(filters: ForecastFiltersModel = Depends(), ctx: DataContext = Depends(get_context)):
    return _json(compute_forecasts(_filters_from_model(filters), ctx))


def _forecast_periods(granularity: str, filters: ForecastFiltersModel, ctx: DataContext) -> JSONResponse:
    return _json(compute_forecast_periods(_filters_from_model(filters), ctx, granularity=granularity))


@router.get("/api/forecasts/weekly")
def forecasts_weekly(filters: ForecastFiltersModel = Depends(), ctx: DataContext = Depends(get_context)):
    return _forecast_periods("weekly", filters, ctx)


@router.get("/api/forecasts/monthly")
def forecasts_monthly(filters: ForecastFiltersModel = Depends(), ctx: DataContext = Depends(get_context)):
    return _forecast_periods("monthly", filters, ctx)


@router.get("/api/forecasts/quarterly")
def forecasts_quarterly(filters: ForecastFiltersModel = Depends(), ctx: DataContext = Depends(get_context)):
    return _forecast_periods("quarterly", filters, ctx)


@router.get("/api/products")
def products(ctx: DataContext = Depends(get_context)):
    return _json(compute_products(ctx))


# ---------------- Insights ----------------
@router.get("/api/insights")
@router.get("/api/insights/monthly-bullets")
def forecast_insights(filters: InsightFiltersModel = Depends(), ctx: DataContext = Depends(get_context)):
    return _json(compute_forecast_insights(_filters_from_model(filters), ctx))


@router.get("/api/insights/operators")
def operator_insights(ctx: DataContext = Depends(get_context)):
    return _json(compute_operator_insights(ctx))


@router.get("/api/insights/{period}")
def period_insights(period: str, ctx: DataContext = Depends(get_context)):
    return _json(compute_period_insights(ctx, period))


@router.get("/api/insights1/{operator_id}")
def operator_insight(operator_id: str, ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_operator_insight(ctx, operator_id))
    except NotFoundError as exc:
        return _json({"message": exc.message})


@router.get("/api/operators/dropdown")
def operators_dropdown(ctx: DataContext = Depends(get_context)):
    return _json(compute_operator_dropdown(ctx))


# ---------------- Sales ----------------
@router.get("/api/sales/kpis")
def sales_kpis(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_sales_kpis(ctx))
    except ComputationError as exc:
        logger.exception("sales_kpis failed")
        return _json({"error": exc.message})


@router.get("/api/sales/{metric}")
def sales_metric(metric: str, ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_sales_metric(ctx, metric))
    except ComputationError as exc:
        logger.exception("sales_metric failed")
        return _json({"error": exc.message})


# ---------------- Inventory ----------------
@router.get("/api/inventory/kpis")
def inventory_kpis(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_inventory_kpis(ctx))
    except ComputationError as exc:
        logger.exception("inventory_kpis failed")
        return _json({"error": exc.message})


@router.get("/api/inventory/reorder_chart")
def reorder_chart(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_reorder_chart(ctx))
    except ComputationError as exc:
        logger.exception("reorder_chart failed")
        return _json({"error": exc.message})


@router.get("/api/inventory/lead_times")
def lead_times(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_lead_times(ctx))
    except ComputationError as exc:
        logger.exception("lead_times failed")
        return _json({"error": exc.message})


@router.get("/api/inventory/suppliers")
def inventory_suppliers(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_supplier_alerts(ctx))
    except ComputationError as exc:
        logger.exception("inventory_suppliers failed")
        return _json({"error": exc.message})


@router.get("/api/inventory/{dataset}")
def inventory_dataset(dataset: str, ctx: DataContext = Depends(get_context)):
    return _json(get_inventory_dataset(ctx, dataset))


# ---------------- Procurement ----------------
@router.get("/api/procurement/insights")
def procurement_insights(ctx: DataContext = Depends(get_context)):
    return _json(compute_procurement_insights(ctx))


@router.get("/api/procurement/insight/{sku_id}")
def procurement_insight(sku_id: str, ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_procurement_insight(ctx, sku_id))
    except NotFoundError as exc:
        return _json({"message": exc.message}, status_code=404)


# ---------------- Operators & schedule ----------------
@router.get("/api/kpis")
def production_kpis(ctx: DataContext = Depends(get_context), settings: Settings = Depends(get_settings)):
    try:
        return _json(
            compute_production_kpis(
                ctx,
                attendance_date=settings.attendance_reference_date,
                schedule_date=settings.schedule_reference_date,
            )
        )
    except ComputationError as exc:
        logger.exception("production_kpis failed")
        return _json({"error": f"KPI error: {exc.message}"}, status_code=500)


@router.get("/api/schedule")
def schedule(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_schedule(ctx))
    except ComputationError as exc:
        return _json({"error": exc.message}, status_code=500)


@router.get("/api/schedule/chart")
def schedule_chart(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_station_chart(ctx))
    except ComputationError as exc:
        return _json({"error": exc.message}, status_code=500)


@router.get("/api/schedule/operator_workload")
def operator_workload(ctx: DataContext = Depends(get_context)):
    try:
        return _json(compute_operator_workload(ctx))
    except ComputationError as exc:
        return _json({"error": exc.message}, status_code=500)


@router.get("/api/attendance")
@router.get("/api/attendance/table")
def attendance(ctx: DataContext = Depends(get_context)):
    return _json(compute_attendance(ctx))


@router.get("/api/leaves")
def leaves(ctx: DataContext = Depends(get_context)):
    return _json(compute_leaves(ctx))


# ---------------- Suppliers ----------------
@router.get("/api/suppliers/list")
def supplier_list(ctx: DataContext = Depends(get_context)):
    return _json(compute_supplier_list(ctx))


@router.get("/api/suppliers/alternates/{supplier}")
def supplier_alternates(supplier: str, ctx: DataContext = Depends(get_context)):
    return _json(compute_alternates(ctx, supplier))


@router.get("/api/suppliers/insight/{identifier}")
def supplier_insight(identifier: str, ctx: DataContext = Depends(get_context)):
    return _json(compute_supplier_insight(ctx, identifier))


@router.get("/api/suppliers/{endpoint}/{supplier}")
def supplier_view(endpoint: str, supplier: str, ctx: DataContext = Depends(get_context)):
    return _json(compute_supplier_view(ctx, endpoint, supplier))


@router.get("/api/debug/datasets")
def debug_datasets(ctx: DataContext = Depends(get_context)):
    return _json(compute_debug(ctx))


# ---------------- App ----------------
def _request_url(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def create_app(settings: Optional[Settings] = None, context: Optional[DataContext] = None) -> FastAPI:
    """Build the API. Without ``context`` every dataset is loaded during startup."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.context is None:
            # A LoadError here aborts startup; requests are never served on partial data.
            app.state.context = await run_in_threadpool(load_context, settings.data_dir, workers=settings.load_workers)
        yield

    app = FastAPI(title="SCM Analytics API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("Received request: %s %s", request.method, _request_url(request))
        return await call_next(request)

    @app.exception_handler(InvalidParameterError)
    async def invalid_parameter_handler(request: Request, exc: InvalidParameterError):
        return _json({"error": exc.message}, status_code=400)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _json({"error": exc.message}, status_code=404)

    @app.exception_handler(AnalyticsError)
    async def analytics_error_handler(request: Request, exc: AnalyticsError):
        logger.error("%s failed: %s", request.url.path, exc.message)
        return _json({"error": exc.message, "type": type(exc).__name__}, status_code=500)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            url = _request_url(request)
            logger.info("No route found for %s %s", request.method, url)
            return _json({"error": f"Sorry, can't find that! The requested URL was: {url}"}, status_code=404)
        return _json({"detail": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("%s failed", request.url.path)
        return _json({"error": str(exc), "type": type(exc).__name__}, status_code=500)

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
