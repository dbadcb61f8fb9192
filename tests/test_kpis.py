import pandas as pd
import pytest

from core.classify import split_sales_exchanges
from core.kpis import (
    KPI_DEFINITIONS,
    NOT_AVAILABLE,
    average_ticket,
    compute_kpis,
    exchange_ratio_pct,
    monthly_growth_pct,
    top_exchange_route,
)


class TestFormulas:
    def test_average_ticket(self):
        assert average_ticket(300.0, 3) == 100.0
        assert average_ticket(300.0, 0) == 0.0

    def test_monthly_growth(self):
        assert monthly_growth_pct(150.0, 100.0) == pytest.approx(50.0)
        assert monthly_growth_pct(50.0, 100.0) == pytest.approx(-50.0)

    @pytest.mark.parametrize("previous", [0, 0.0, None, float("nan")])
    def test_growth_without_previous_month_is_zero(self, previous):
        assert monthly_growth_pct(100.0, previous) == 0.0

    def test_exchange_ratio(self):
        assert exchange_ratio_pct(30.0, 400.0) == pytest.approx(7.5)
        assert exchange_ratio_pct(30.0, 0.0) == 0.0
        assert exchange_ratio_pct(None, 100.0) == 0.0

    def test_top_exchange_route(self):
        assert top_exchange_route({"Rota 1": 50.0, "Rota 9": 80.0}) == "Rota 9"
        assert top_exchange_route({}) == NOT_AVAILABLE


class TestComputeKpis:
    def test_on_sample(self, records):
        sales, exchanges = split_sales_exchanges(records)
        kpis = compute_kpis(sales, exchanges, full_exchanges=exchanges)
        assert kpis.order_count == 4
        assert kpis.total_sales == pytest.approx(1770.5)
        assert kpis.average_ticket == pytest.approx(442.625)
        assert kpis.current_month_sales == 400.0
        assert kpis.previous_month_sales == 250.5
        assert kpis.monthly_growth_pct == pytest.approx((400.0 - 250.5) / 250.5 * 100)
        assert kpis.has_previous_month
        assert kpis.exchange_count == 2
        assert kpis.total_exchange_value == pytest.approx(80.0)
        assert kpis.exchange_month_value == 30.0
        assert kpis.exchange_ratio_pct == pytest.approx(7.5)
        assert kpis.global_exchange_total == pytest.approx(80.0)
        assert kpis.top_exchange_route == "Rota 1"

    def test_sales_and_exchange_scenario(self):
        df = pd.DataFrame(
            {
                "product": ["Caixa", "TROCA Caixa"],
                "total_value": [100.0, 50.0],
                "exchange_value": [0.0, 50.0],
                "route": ["R1", "R1"],
                "date": [pd.Timestamp("2024-01-15"), pd.Timestamp("2024-01-20")],
            }
        )
        sales, exchanges = split_sales_exchanges(df)
        kpis = compute_kpis(sales, exchanges)
        assert kpis.order_count == 1
        assert kpis.total_sales == 100.0
        assert kpis.exchange_count == 1
        assert kpis.global_exchange_total == 50.0
        assert kpis.monthly_growth_pct == 0.0
        assert not kpis.has_previous_month
        assert kpis.has_sales_month

    def test_empty_inputs(self):
        empty = pd.DataFrame(columns=["product", "total_value", "date", "route", "exchange_value"])
        kpis = compute_kpis(empty, empty)
        assert kpis.average_ticket == 0.0
        assert kpis.monthly_growth_pct == 0.0
        assert kpis.exchange_ratio_pct == 0.0
        assert kpis.top_exchange_route == NOT_AVAILABLE
        assert not kpis.has_sales_month


def test_definitions_have_unique_keys():
    keys = [d["key"] for d in KPI_DEFINITIONS]
    assert len(keys) == len(set(keys))
    assert all(d["title"] and d["description"] for d in KPI_DEFINITIONS)
