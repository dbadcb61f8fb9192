from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from core.aggregations import monthly_totals, year_over_year, yearly_totals
from core.charts import grouped_month_bars, month_line, share_pie
from core.filters import FilterCriteria


def compute_trends(filters: FilterCriteria, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Monthly, annual and year-over-year series.

    Annual revenue is taken from the unfiltered collection when the context
    carries one, and covers sales and exchanges alike.
    """
    sales: pd.DataFrame = ctx.get("sales", pd.DataFrame())
    exchanges: pd.DataFrame = ctx.get("exchanges", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    records: Optional[pd.DataFrame] = ctx.get("records")

    sales_by_month = monthly_totals(sales)
    exchanges_by_month = monthly_totals(exchanges)
    annual = yearly_totals(records if records is not None else filtered)
    yoy = year_over_year(sales, years_from=filtered)

    return {
        "filters": asdict(filters),
        "sales_by_month": [{"month": m, "value": v} for m, v in sales_by_month.items()],
        "exchanges_by_month": [{"month": m, "value": v} for m, v in exchanges_by_month.items()],
        "annual_revenue": [{"year": y, "value": v} for y, v in annual.items()],
        "year_over_year": yoy,
        "charts": {
            "sales_by_month": month_line(sales_by_month, label="Vendas Mensais", title="Vendas por Mês (R$)", color="#ff5722"),
            "exchanges_by_month": month_line(exchanges_by_month, label="Trocas (R$)", title="Trocas por Mês", color="#e91e63"),
            "annual_revenue": share_pie(annual, title="Faturamento por Ano"),
            "year_over_year": grouped_month_bars(yoy, title="Comparativo de Vendas por Mês (Ano a Ano)"),
        },
    }
