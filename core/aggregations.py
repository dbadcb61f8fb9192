from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd


TOP_N = 10
NO_ROUTE = "Sem Rota"
MISSING_KEY = "Não informado"
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTH_INDEX = {name.lower(): i + 1 for i, name in enumerate(MONTHS)}

KeyFn = Union[str, Callable[[pd.DataFrame], pd.Series]]


def _column(records: pd.DataFrame, field: KeyFn) -> pd.Series:
    if callable(field):
        return field(records)
    if field not in records.columns:
        return pd.Series(pd.NA, index=records.index, dtype=object)
    return records[field]


def group_and_sum(records: pd.DataFrame, key: KeyFn, value: KeyFn, *, dropna: bool = False) -> Dict[str, float]:
    """Sum ``value`` per ``key`` in first-seen key order.

    ``key`` and ``value`` are column names or callables returning a Series
    aligned with ``records``. Rows whose key is missing are summed under
    ``MISSING_KEY`` unless ``dropna`` is set; values that are not numbers
    count as 0.
    """
    if records.empty:
        return {}
    keys = _column(records, key)
    if not dropna:
        keys = keys.astype(object).where(keys.notna(), MISSING_KEY)
    values = pd.to_numeric(_column(records, value), errors="coerce").fillna(0.0)
    grouped = values.groupby(keys, sort=False).sum()
    return {str(k): float(v) for k, v in grouped.items()}


def top_n(mapping: Mapping[str, float], n: int = TOP_N) -> List[Tuple[str, float]]:
    """Largest ``n`` entries by value; equal values keep their mapping order."""
    if n <= 0:
        return []
    return sorted(mapping.items(), key=lambda kv: kv[1], reverse=True)[:n]


# ---------------- Calendar buckets ----------------
def month_label(value: object) -> Optional[str]:
    """``"MMM yyyy"`` with English month abbreviations, e.g. ``"Jan 2024"``."""
    if value is None:
        return None
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        return None
    return f"{MONTHS[ts.month - 1]} {ts.year:04d}"


def parse_month_label(label: str) -> Tuple[int, int]:
    parts = str(label).split()
    if len(parts) != 2 or parts[0].lower() not in _MONTH_INDEX or not parts[1].isdigit():
        raise ValueError(f"not a month label: {label!r}")
    return int(parts[1]), _MONTH_INDEX[parts[0].lower()]


def _month_sort_key(label: str) -> Tuple[int, int, int]:
    try:
        year, month = parse_month_label(label)
    except ValueError:
        return (1, 0, 0)
    return (0, year, month)


def sort_month_labels(labels: Iterable[str]) -> List[str]:
    """Chronological order; labels that do not parse go last."""
    return sorted(labels, key=_month_sort_key)


def _dates(records: pd.DataFrame) -> pd.Series:
    if "date" not in records.columns:
        return pd.Series(pd.NaT, index=records.index, dtype="datetime64[ns]")
    return pd.to_datetime(records["date"], errors="coerce")


def month_keys(records: pd.DataFrame) -> pd.Series:
    dates = _dates(records)
    return dates.map(month_label)


def year_keys(records: pd.DataFrame) -> pd.Series:
    dates = _dates(records)
    return dates.dt.year.map(lambda y: f"{int(y):04d}", na_action="ignore")


def monthly_totals(records: pd.DataFrame, value: KeyFn = "total_value") -> Dict[str, float]:
    """Totals per ``"MMM yyyy"`` month, in chronological order."""
    totals = group_and_sum(records, month_keys, value, dropna=True)
    return {label: totals[label] for label in sort_month_labels(totals)}


def latest_two_months(monthly: Mapping[str, float]) -> Tuple[float, float]:
    """(latest month total, month before it); 0 where the month is absent."""
    ordered = sort_month_labels(monthly)
    current = float(monthly[ordered[-1]]) if ordered else 0.0
    previous = float(monthly[ordered[-2]]) if len(ordered) >= 2 else 0.0
    return current, previous


def yearly_totals(records: pd.DataFrame, value: KeyFn = "total_value") -> Dict[str, float]:
    totals = group_and_sum(records, year_keys, value, dropna=True)
    return {year: totals[year] for year in sorted(totals)}


def year_over_year(sales: pd.DataFrame, years_from: Optional[pd.DataFrame] = None) -> Dict[str, object]:
    """Monthly sales side by side per year.

    Returns ``{"months": [...12...], "years": [...], "values": {year: [12 totals]}}``.
    Years come from ``years_from`` (all records in the period) when given, so a
    year with exchanges only still gets a zero row.
    """
    source = sales if years_from is None else years_from
    years = sorted(set(year_keys(source).dropna().tolist())) if not source.empty else []

    grouped: Dict[Tuple[str, str], float] = {}
    if not sales.empty:
        dates = _dates(sales)
        frame = pd.DataFrame(
            {
                "month": dates.map(lambda d: None if pd.isna(d) else MONTHS[d.month - 1]),
                "year": year_keys(sales),
                "value": pd.to_numeric(_column(sales, "total_value"), errors="coerce").fillna(0.0),
            }
        ).dropna(subset=["month", "year"])
        if not frame.empty:
            sums = frame.groupby(["month", "year"])["value"].sum()
            grouped = {(str(m), str(y)): float(v) for (m, y), v in sums.items()}

    return {
        "months": list(MONTHS),
        "years": years,
        "values": {year: [grouped.get((month, year), 0.0) for month in MONTHS] for year in years},
    }


# ---------------- Named groupings ----------------
def product_quantity(sales: pd.DataFrame) -> Dict[str, float]:
    return group_and_sum(sales, "product", "quantity")


def product_value(sales: pd.DataFrame) -> Dict[str, float]:
    return group_and_sum(sales, "product", "total_value")


def route_value(sales: pd.DataFrame) -> Dict[str, float]:
    return group_and_sum(sales, "route", "total_value")


def _route_or_default(records: pd.DataFrame) -> pd.Series:
    routes = _column(records, "route").astype("string").fillna("")
    return routes.mask(routes == "", NO_ROUTE).astype(object)


def exchange_route_value(exchanges: pd.DataFrame) -> Dict[str, float]:
    """Exchange value per route; lines without a route go to ``"Sem Rota"``."""
    return group_and_sum(exchanges, _route_or_default, "total_value")


def sum_column(records: pd.DataFrame, col: str) -> float:
    if records.empty or col not in records.columns:
        return 0.0
    return float(pd.to_numeric(records[col], errors="coerce").fillna(0.0).sum())
