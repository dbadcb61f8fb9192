from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FilterCriteriaModel, RecordModel, RecordPatchModel
from core.aggregations import TOP_N
from core.config import ApiSettings
from core.data import FetchError, get_store, load_dashboard_data, prepare_context
from core.filters import FilterCriteria, normalize_filters
from core.kpis import KPI_DEFINITIONS
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview
from core.metrics_performance import compute_performance
from core.metrics_table import compute_table
from core.metrics_trends import compute_trends


app = FastAPI(title="Sales & Exchanges Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ApiSettings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: FilterCriteriaModel) -> FilterCriteria:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
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
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _page(name: str, filters: FilterCriteriaModel, compute: Callable[[FilterCriteria, Dict[str, Any]], Dict[str, Any]]) -> JSONResponse:
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute(f, ctx))
    except FetchError as exc:
        logger.warning("%s: records unavailable: %s", name, exc)
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(exc, 500)


def _meta(name: str, key: str) -> JSONResponse:
    try:
        data_ctx = load_dashboard_data()
        return _json({"values": data_ctx.get(key, [])})
    except FetchError as exc:
        logger.warning("%s: records unavailable: %s", name, exc)
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(exc, 500)


@app.get("/meta/customers")
def meta_customers():
    return _meta("meta_customers", "customers")


@app.get("/meta/routes")
def meta_routes():
    return _meta("meta_routes", "routes")


@app.get("/meta/products")
def meta_products():
    return _meta("meta_products", "products")


@app.get("/meta/kpis")
def meta_kpis():
    return _json({"kpis": KPI_DEFINITIONS})


@app.post("/overview")
def overview(filters: FilterCriteriaModel):
    return _page("overview", filters, compute_overview)


@app.post("/performance")
def performance(filters: FilterCriteriaModel, limit: int = Query(default=TOP_N, ge=1, le=100)):
    return _page("performance", filters, lambda f, ctx: compute_performance(f, ctx, limit=limit))


@app.post("/trends")
def trends(filters: FilterCriteriaModel):
    return _page("trends", filters, compute_trends)


@app.post("/table")
def table(filters: FilterCriteriaModel):
    return _page("table", filters, compute_table)


@app.post("/debug")
def debug(filters: FilterCriteriaModel):
    return _page("debug", filters, compute_debug)


@app.post("/refresh")
def refresh():
    store = get_store()
    try:
        records = store.refresh()
    except FetchError as exc:
        # The previous collection stays in place.
        return JSONResponse(
            status_code=502,
            content={"error": str(exc), "type": "FetchError", "records": int(len(store.records))},
        )
    except Exception as exc:
        logger.exception("refresh failed")
        return _error(exc, 500)
    return _json({"records": int(len(records)), "fetched_at": store.fetched_at})


@app.post("/export")
def export(filters: FilterCriteriaModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        export_df = ctx.get("filtered")
        if export_df is None or not hasattr(export_df, "to_csv"):
            export_df = pd.DataFrame()
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    except FetchError as exc:
        logger.warning("export: records unavailable: %s", exc)
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc, 500)
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=records.csv"})


@app.post("/records")
def add_record(record: RecordModel):
    try:
        return _json({"record": get_store().add_record(record.model_dump()), "persisted": False})
    except Exception as exc:
        logger.exception("add_record failed")
        return _error(exc, 500)


@app.put("/records/{record_id}")
def update_record(record_id: str, changes: RecordPatchModel):
    try:
        get_store().update_record(record_id, changes.model_dump(exclude_unset=True))
        return _json({"id": record_id, "persisted": False})
    except Exception as exc:
        logger.exception("update_record failed")
        return _error(exc, 500)


@app.delete("/records/{record_id}")
def delete_record(record_id: str):
    try:
        get_store().delete_record(record_id)
        return _json({"id": record_id, "persisted": False})
    except Exception as exc:
        logger.exception("delete_record failed")
        return _error(exc, 500)
