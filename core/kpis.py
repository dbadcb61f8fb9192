from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

import pandas as pd

from core.aggregations import exchange_route_value, latest_two_months, monthly_totals, sum_column, top_n


NOT_AVAILABLE = "N/A"

KPI_DEFINITIONS: List[Dict[str, str]] = [
    {"key": "average_ticket", "title": "Ticket Médio (filtrado)", "description": "Average value per order, sales only (exchanges excluded)."},
    {"key": "monthly_growth_pct", "title": "Crescimento Mensal", "description": "Change between sales in the latest month and the month before it."},
    {"key": "exchange_ratio_pct", "title": "% Trocas sobre Vendas", "description": "Exchange value in the latest month as a share of sales in the latest month."},
    {"key": "global_exchange_total", "title": "Trocas Totais (Produto)", "description": "Sum of exchanges detected by the word 'troca' in the product name, across all data."},
    {"key": "exchange_month_value", "title": "Trocas no Mês", "description": "Exchange value recorded in the most recent month."},
    {"key": "top_exchange_route", "title": "Maior Rota de Troca", "description": "Route with the highest accumulated exchange value under the current filter."},
    {"key": "sales_by_month", "title": "Vendas por Mês", "description": "Monthly evolution of total sales value."},
    {"key": "exchanges_by_month", "title": "Trocas por Mês", "description": "Monthly exchange values."},
    {"key": "exchanges_by_route", "title": "Trocas por Rota", "description": "Routes with the largest exchange value."},
    {"key": "totals", "title": "Total de Vendas e Trocas", "description": "Sales against exchanges for the filtered period and overall."},
    {"key": "annual_revenue", "title": "Faturamento Anual (Pizza)", "description": "Share of revenue per year."},
    {"key": "year_over_year", "title": "Comparativo Ano a Ano", "description": "Monthly sales side by side across years."},
]


def _number(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    try:
        out = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(out) else out


def average_ticket(total_sales: float, order_count: int) -> float:
    return _number(total_sales) / order_count if order_count > 0 else 0.0


def monthly_growth_pct(current: Optional[float], previous: Optional[float]) -> float:
    """Percent change month over month; 0 when there is no previous value to compare."""
    current, previous = _number(current), _number(previous)
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def exchange_ratio_pct(exchange_value: Optional[float], sales_value: Optional[float]) -> float:
    sales_value = _number(sales_value)
    if sales_value <= 0:
        return 0.0
    return _number(exchange_value) / sales_value * 100


def top_exchange_route(route_exchanges: Mapping[str, float]) -> str:
    ranked = top_n(route_exchanges, 1)
    if not ranked or not ranked[0][0]:
        return NOT_AVAILABLE
    return ranked[0][0]


@dataclass(frozen=True)
class KpiSet:
    order_count: int
    total_sales: float
    average_ticket: float
    current_month_sales: float
    previous_month_sales: float
    monthly_growth_pct: float
    has_previous_month: bool
    exchange_count: int
    total_exchange_value: float
    exchange_month_value: float
    exchange_ratio_pct: float
    has_sales_month: bool
    global_exchange_total: float
    top_exchange_route: str


def compute_kpis(
    sales: pd.DataFrame,
    exchanges: pd.DataFrame,
    *,
    full_exchanges: Optional[pd.DataFrame] = None,
) -> KpiSet:
    """Build the KPI cards from the filtered sale/exchange split.

    ``full_exchanges`` is the exchange subset of the unfiltered collection,
    used for the overall exchange total; the filtered subset stands in when
    it is not given.
    """
    order_count = int(len(sales))
    total_sales = sum_column(sales, "total_value")

    sales_by_month = monthly_totals(sales)
    current, previous = latest_two_months(sales_by_month)
    exchange_month, _ = latest_two_months(monthly_totals(exchanges))

    routes = exchange_route_value(exchanges)
    overall = exchanges if full_exchanges is None else full_exchanges

    return KpiSet(
        order_count=order_count,
        total_sales=total_sales,
        average_ticket=average_ticket(total_sales, order_count),
        current_month_sales=current,
        previous_month_sales=previous,
        monthly_growth_pct=monthly_growth_pct(current, previous),
        has_previous_month=len(sales_by_month) >= 2,
        exchange_count=int(len(exchanges)),
        total_exchange_value=sum_column(exchanges, "exchange_value"),
        exchange_month_value=exchange_month,
        exchange_ratio_pct=exchange_ratio_pct(exchange_month, current),
        has_sales_month=len(sales_by_month) >= 1,
        global_exchange_total=sum_column(overall, "total_value"),
        top_exchange_route=top_exchange_route(routes),
    )
