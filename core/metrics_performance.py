from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Tuple

import pandas as pd

from core.aggregations import TOP_N, exchange_route_value, product_quantity, product_value, route_value, top_n
from core.charts import ranked_bar
from core.filters import FilterCriteria


def _ranked(entries: List[Tuple[str, float]]) -> List[Dict[str, Any]]:
    return [{"rank": i + 1, "key": key, "value": value} for i, (key, value) in enumerate(entries)]


def compute_performance(filters: FilterCriteria, ctx: Dict[str, Any], *, limit: int = TOP_N) -> Dict[str, Any]:
    sales: pd.DataFrame = ctx.get("sales", pd.DataFrame())
    exchanges: pd.DataFrame = ctx.get("exchanges", pd.DataFrame())
    limit = max(1, int(limit))

    by_quantity = top_n(product_quantity(sales), limit)
    by_value = top_n(product_value(sales), limit)
    by_route = top_n(route_value(sales), limit)
    exchanges_by_route = top_n(exchange_route_value(exchanges), limit)

    return {
        "filters": asdict(filters),
        "limit": limit,
        "top_products_quantity": _ranked(by_quantity),
        "top_products_value": _ranked(by_value),
        "top_routes_value": _ranked(by_route),
        "exchanges_by_route": _ranked(exchanges_by_route),
        "charts": {
            "top_products_quantity": ranked_bar(by_quantity, label="Quantidade", title="Produto", value_format=",.0f"),
            "top_products_value": ranked_bar(by_value, label="Valor", title="Produto"),
            "top_routes_value": ranked_bar(by_route, label="Rotas", title="Rota"),
            "exchanges_by_route": ranked_bar(exchanges_by_route, label="Trocas por Rota", title="Rota"),
        },
    }
