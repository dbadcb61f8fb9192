from __future__ import annotations

import re
import unicodedata
from typing import Optional, Tuple

import pandas as pd


EXCHANGE_KEYWORD = "troca"
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")


def is_exchange(product_name: Optional[str]) -> bool:
    """Return True when a product name marks the line as a product exchange.

    The match is accent-insensitive, case-insensitive and substring based:
    "Troca Caixa", "TROCA" and "Tróca" all qualify.
    """
    if not isinstance(product_name, str) or not product_name:
        return False
    stripped = _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", product_name))
    return EXCHANGE_KEYWORD in stripped.lower()


def exchange_mask(records: pd.DataFrame) -> pd.Series:
    if records.empty or "product" not in records.columns:
        return pd.Series(False, index=records.index, dtype=bool)
    return records["product"].map(is_exchange).astype(bool)


def split_sales_exchanges(records: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Split records into (sales, exchanges) by product name."""
    mask = exchange_mask(records)
    return records[~mask].copy(), records[mask].copy()
