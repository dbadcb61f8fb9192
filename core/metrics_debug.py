from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.filters import FilterCriteria, has_active_filters


def _undated(df: pd.DataFrame) -> int:
    if df.empty or "date" not in df.columns:
        return 0
    return int(pd.to_datetime(df["date"], errors="coerce").isna().sum())


def compute_debug(filters: FilterCriteria, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    fetched_at = ctx.get("fetched_at")

    payload = {
        "filters": asdict(filters),
        "filters_active": has_active_filters(filters),
        "date_range_inverted": filters.date_range.inverted,
        "fetched_at": fetched_at.isoformat() if fetched_at is not None else None,
        "last_error": ctx.get("last_error"),
        "row_counts": {
            "records": int(len(records)),
            "filtered": int(len(filtered)),
            "sales": int(len(ctx.get("sales", pd.DataFrame()))),
            "exchanges": int(len(ctx.get("exchanges", pd.DataFrame()))),
            "full_sales": int(len(ctx.get("full_sales", pd.DataFrame()))),
            "full_exchanges": int(len(ctx.get("full_exchanges", pd.DataFrame()))),
        },
        "cleaning_checks": {
            "undated_rows": _undated(records),
            "synthetic_ids": 0,
            "zero_value_rows": 0,
        },
        "date_coverage": None,
    }

    if not records.empty:
        if "id" in records.columns:
            payload["cleaning_checks"]["synthetic_ids"] = int(records["id"].astype(str).str.match(r"^row-\d+$").sum())
        if "total_value" in records.columns:
            values = pd.to_numeric(records["total_value"], errors="coerce").fillna(0.0)
            payload["cleaning_checks"]["zero_value_rows"] = int((values == 0).sum())
        if "date" in records.columns:
            dates = pd.to_datetime(records["date"], errors="coerce").dropna()
            if not dates.empty:
                payload["date_coverage"] = {"min": dates.min().date().isoformat(), "max": dates.max().date().isoformat()}
    return payload
