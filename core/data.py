from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import requests

from core.classify import split_sales_exchanges
from core.config import SheetSettings, get_sheet_settings
from core.filters import FilterCriteria, apply_filters, normalize_filters


logger = logging.getLogger(__name__)

# Sheet columns A..Q, in order.
RECORD_COLUMNS = [
    "id",
    "date",
    "order_key",
    "customer_code",
    "product_code",
    "customer",
    "product",
    "quantity",
    "packaging",
    "unit_value",
    "total_value",
    "route",
    "cost_center",
    "tax_status",
    "sale_confirmed",
    "exchange_flag",
    "exchange_value",
]
NUMERIC_COLUMNS = ["quantity", "unit_value", "total_value", "exchange_value"]
SHEET_DATE_FORMAT = "%d/%m/%Y"
CURRENCY_PREFIX = "R$\u00a0"

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class FetchError(RuntimeError):
    """The record source could not deliver rows."""


# ---------------- Field parsing ----------------
def _cell(row: Sequence[object], idx: int) -> str:
    if idx >= len(row) or row[idx] is None:
        return ""
    return str(row[idx])


def parse_decimal(value: object) -> float:
    """Parse the leading number of a cell ("12abc" -> 12.0); 0.0 when there is none."""
    if value is None:
        return 0.0
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0.0
    try:
        out = float(match.group(1))
    except ValueError:
        return 0.0
    return 0.0 if pd.isna(out) else out


def parse_brl_decimal(value: object) -> float:
    """Parse a pt-BR amount such as "1.234,56"."""
    text = str(value) if value not in (None, "") else "0"
    return parse_decimal(text.replace(".", "").replace(",", ".", 1))


def empty_records() -> pd.DataFrame:
    df = pd.DataFrame({col: pd.Series(dtype=object) for col in RECORD_COLUMNS})
    df["date"] = pd.Series(dtype="datetime64[ns]")
    for col in NUMERIC_COLUMNS:
        df[col] = pd.Series(dtype=float)
    return df


def parse_rows(rows: Sequence[Sequence[object]]) -> pd.DataFrame:
    """Turn raw sheet rows (header first) into the record frame.

    Each cell falls back to its default on its own, so a malformed value
    never drops the row.
    """
    entries = list(rows)[1:]
    if not entries:
        return empty_records()

    out: List[Dict[str, object]] = []
    for index, row in enumerate(entries):
        row = list(row or [])
        rec: Dict[str, object] = {col: _cell(row, i) for i, col in enumerate(RECORD_COLUMNS)}
        rec["id"] = rec["id"] or f"row-{index}"
        rec["quantity"] = parse_decimal(rec["quantity"])
        rec["unit_value"] = parse_decimal(rec["unit_value"])
        rec["total_value"] = parse_brl_decimal(rec["total_value"])
        rec["exchange_value"] = parse_brl_decimal(rec["exchange_value"])
        out.append(rec)

    df = pd.DataFrame(out, columns=RECORD_COLUMNS)
    df["date"] = pd.to_datetime(df["date"].str.strip(), format=SHEET_DATE_FORMAT, errors="coerce")
    for col in NUMERIC_COLUMNS:
        df[col] = df[col].astype(float)
    return df


def distinct_values(records: pd.DataFrame, col: str) -> List[str]:
    if records.empty or col not in records.columns:
        return []
    values = records[col].dropna().astype(str)
    return sorted(v for v in values.unique().tolist() if v)


# ---------------- Formatting (presentation boundary only) ----------------
def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_currency(value: object) -> str:
    """pt-BR currency text, e.g. ``R$ 1.234,56`` (non-breaking space after the symbol)."""
    rounded = round_half_up(value, 2)
    if rounded is None:
        return "N/A"
    text = f"{abs(rounded):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{CURRENCY_PREFIX}{text}"


def format_percent(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.1f}%"


# ---------------- Sources ----------------
class SheetsRecordSource:
    """Reads the sales sheet through the Google Sheets values API."""

    def __init__(self, settings: SheetSettings) -> None:
        self._settings = settings

    def fetch_rows(self) -> List[List[str]]:
        if not self._settings.configured:
            raise FetchError("Google Sheets credentials are not configured")
        try:
            response = requests.get(
                self._settings.values_url,
                params={"key": self._settings.api_key},
                timeout=self._settings.timeout,
            )
        except requests.RequestException as exc:
            raise FetchError(f"Google Sheets request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if not response.ok:
            error = payload.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            raise FetchError(f"Google Sheets API error: {message or 'Unknown error'}")
        return payload.get("values") or []

    def fetch_records(self) -> pd.DataFrame:
        return parse_rows(self.fetch_rows())


class RecordStore:
    """In-memory record collection, replaced whole on every successful refresh.

    ``source`` is anything with a ``fetch_records()`` method returning a
    record frame. Writes are placeholders: they log, wait ``mutation_latency``
    seconds and leave the collection untouched.
    """

    def __init__(self, source: Any, *, mutation_latency: float = 1.0) -> None:
        self._source = source
        self._records = empty_records()
        self.mutation_latency = max(0.0, float(mutation_latency))
        self.fetched_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def records(self) -> pd.DataFrame:
        return self._records

    @property
    def loaded(self) -> bool:
        return self.fetched_at is not None

    def refresh(self) -> pd.DataFrame:
        try:
            records = self._source.fetch_records()
        except FetchError as exc:
            self.last_error = str(exc)
            logger.warning("record refresh failed, keeping %d records: %s", len(self._records), exc)
            raise
        self._records = records
        self.fetched_at = datetime.now(timezone.utc)
        self.last_error = None
        logger.info("loaded %d records", len(records))
        return records

    def ensure_loaded(self) -> pd.DataFrame:
        if not self.loaded:
            return self.refresh()
        return self._records

    def _simulate_write(self) -> None:
        if self.mutation_latency:
            time.sleep(self.mutation_latency)

    def update_record(self, record_id: str, changes: Dict[str, Any]) -> None:
        logger.info("update not persisted: %s %s", record_id, changes)
        self._simulate_write()

    def add_record(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {**data, "id": str(int(time.time() * 1000))}
        logger.info("add not persisted: %s", record)
        self._simulate_write()
        return record

    def delete_record(self, record_id: str) -> None:
        logger.info("delete not persisted: %s", record_id)
        self._simulate_write()


# ---------------- Public API ----------------
@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    settings = get_sheet_settings()
    return RecordStore(SheetsRecordSource(settings), mutation_latency=settings.mutation_latency)


def load_dashboard_data(store: Optional[RecordStore] = None) -> Dict[str, object]:
    store = store or get_store()
    store.ensure_loaded()
    records = store.records
    return {
        "records": records,
        "fetched_at": store.fetched_at,
        "last_error": store.last_error,
        "customers": distinct_values(records, "customer"),
        "routes": distinct_values(records, "route"),
        "products": distinct_values(records, "product"),
    }


def prepare_context(filters: dict | FilterCriteria, data_ctx: Dict[str, object]) -> Dict[str, object]:
    records = data_ctx.get("records")
    full: pd.DataFrame = records if isinstance(records, pd.DataFrame) else empty_records()
    filt = filters if isinstance(filters, FilterCriteria) else normalize_filters(filters)

    filtered = apply_filters(full, filt)
    sales, exchanges = split_sales_exchanges(filtered)
    full_sales, full_exchanges = split_sales_exchanges(full)

    return {
        "filters": filt,
        "records": full,
        "filtered": filtered,
        "sales": sales,
        "exchanges": exchanges,
        "full_sales": full_sales,
        "full_exchanges": full_exchanges,
        "fetched_at": data_ctx.get("fetched_at"),
        "last_error": data_ctx.get("last_error"),
    }
