from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import pandas as pd


logger = logging.getLogger(__name__)

TEXT_FIELDS = ("id", "customer", "route", "product")


@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_set(self) -> bool:
        return self.start is not None or self.end is not None

    @property
    def inverted(self) -> bool:
        return self.start is not None and self.end is not None and self.start > self.end


@dataclass(frozen=True)
class FilterCriteria:
    id: str = ""
    customer: str = ""
    route: str = ""
    product: str = ""
    date_range: DateRange = field(default_factory=DateRange)
    min_quantity: Optional[float] = None
    min_value: Optional[float] = None


def _as_date(value: object) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        ts = pd.Timestamp(str(value))
    except (ValueError, TypeError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def _as_float(value: object) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if pd.isna(out):
        return None
    return out


def normalize_filters(raw: dict) -> FilterCriteria:
    raw = raw or {}
    dr = raw.get("date_range") or {}
    date_range = DateRange(start=_as_date(dr.get("start")), end=_as_date(dr.get("end")))
    if date_range.inverted:
        logger.debug("date range start %s is after end %s", date_range.start, date_range.end)

    return FilterCriteria(
        id=str(raw.get("id") or "").strip(),
        customer=str(raw.get("customer") or "").strip(),
        route=str(raw.get("route") or "").strip(),
        product=str(raw.get("product") or "").strip(),
        date_range=date_range,
        min_quantity=_as_float(raw.get("min_quantity")),
        min_value=_as_float(raw.get("min_value")),
    )


def has_active_filters(criteria: FilterCriteria) -> bool:
    return (
        any(getattr(criteria, name) for name in TEXT_FIELDS)
        or criteria.date_range.is_set
        or criteria.min_quantity is not None
        or criteria.min_value is not None
    )


def _contains(records: pd.DataFrame, col: str, query: str) -> pd.Series:
    if col not in records.columns:
        return pd.Series(False, index=records.index, dtype=bool)
    matched = records[col].astype("string").str.lower().str.contains(query.lower(), regex=False)
    return matched.fillna(False).astype(bool)


def _at_least(records: pd.DataFrame, col: str, threshold: float) -> pd.Series:
    # Values that are not numbers never exclude a record.
    if col not in records.columns:
        return pd.Series(True, index=records.index, dtype=bool)
    values = pd.to_numeric(records[col], errors="coerce")
    return (values.isna() | (values >= threshold)).astype(bool)


def apply_filters(records: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
    """Return the records that satisfy every active criterion.

    Text criteria are case-insensitive substring matches. The date range is
    inclusive on both ends and compared at day precision; a missing bound is
    open on that side, and a range whose start is after its end matches
    nothing. Quantity and value thresholds let non-numeric values through.
    """
    if records.empty:
        return records.copy()

    mask = pd.Series(True, index=records.index, dtype=bool)
    for name in TEXT_FIELDS:
        query = getattr(criteria, name)
        if query:
            mask &= _contains(records, name, query)

    dr = criteria.date_range
    if dr.is_set:
        if "date" in records.columns:
            days = pd.to_datetime(records["date"], errors="coerce").dt.normalize()
        else:
            days = pd.Series(pd.NaT, index=records.index, dtype="datetime64[ns]")
        # NaT compares False, so undated records fail any active bound.
        if dr.start is not None:
            mask &= days >= pd.Timestamp(dr.start)
        if dr.end is not None:
            mask &= days <= pd.Timestamp(dr.end)

    if criteria.min_quantity is not None:
        mask &= _at_least(records, "quantity", criteria.min_quantity)
    if criteria.min_value is not None:
        mask &= _at_least(records, "total_value", criteria.min_value)

    return records[mask]
