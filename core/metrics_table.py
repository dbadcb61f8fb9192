from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.classify import exchange_mask
from core.data import format_currency
from core.filters import FilterCriteria

TABLE_COLUMNS = ["id", "date", "customer", "product", "quantity", "total_value", "route"]


def table_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    cols = [c for c in TABLE_COLUMNS if c in df.columns]
    out = df[cols].copy()
    if "date" in out.columns:
        dates = pd.to_datetime(out["date"], errors="coerce")
        out["date"] = [None if pd.isna(d) else d.strftime("%Y-%m-%d") for d in dates]
    if "total_value" in out.columns:
        out["total_value_formatted"] = out["total_value"].map(format_currency)
    out["is_exchange"] = exchange_mask(df).tolist()
    return out.to_dict(orient="records")


def compute_table(filters: FilterCriteria, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    return {
        "filters": asdict(filters),
        "total": int(len(filtered)),
        "rows": table_rows(filtered),
    }
