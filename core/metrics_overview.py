from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.aggregations import sum_column
from core.data import format_currency, format_percent
from core.filters import FilterCriteria
from core.kpis import compute_kpis

_CURRENCY_KPIS = (
    "total_sales",
    "average_ticket",
    "current_month_sales",
    "previous_month_sales",
    "total_exchange_value",
    "exchange_month_value",
    "global_exchange_total",
)
_PERCENT_KPIS = ("monthly_growth_pct", "exchange_ratio_pct")


def compute_overview(filters: FilterCriteria, ctx: Dict[str, Any]) -> Dict[str, Any]:
    sales: pd.DataFrame = ctx.get("sales", pd.DataFrame())
    exchanges: pd.DataFrame = ctx.get("exchanges", pd.DataFrame())
    full_sales: pd.DataFrame = ctx.get("full_sales", pd.DataFrame())
    full_exchanges: pd.DataFrame = ctx.get("full_exchanges", pd.DataFrame())
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())

    kpis = compute_kpis(sales, exchanges, full_exchanges=full_exchanges)
    raw = asdict(kpis)

    formatted = {key: format_currency(raw[key]) for key in _CURRENCY_KPIS}
    formatted.update({key: format_percent(raw[key]) for key in _PERCENT_KPIS})
    formatted["top_exchange_route"] = kpis.top_exchange_route

    totals = {
        "filtered_sales": sum_column(sales, "total_value"),
        "global_sales": sum_column(full_sales, "total_value"),
        "filtered_exchanges": sum_column(exchanges, "total_value"),
        "global_exchanges": sum_column(full_exchanges, "total_value"),
        "global_exchange_value": sum_column(records, "exchange_value"),
        "gross_total_value": sum_column(records, "total_value"),
    }

    return {
        "filters": asdict(filters),
        "kpis": raw,
        "kpis_formatted": formatted,
        "totals": totals,
        "totals_formatted": {key: format_currency(value) for key, value in totals.items()},
    }
