from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class DateRangeModel(BaseModel):
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None


class FilterCriteriaModel(BaseModel):
    id: str = ""
    customer: str = ""
    route: str = ""
    product: str = ""
    date_range: DateRangeModel = Field(default_factory=DateRangeModel)
    min_quantity: Optional[float] = None
    min_value: Optional[float] = None


class RecordModel(BaseModel):
    date: Optional[dt.date] = None
    order_key: str = ""
    customer_code: str = ""
    product_code: str = ""
    customer: str = ""
    product: str = ""
    quantity: float = 0.0
    packaging: str = ""
    unit_value: float = 0.0
    total_value: float = 0.0
    route: str = ""
    cost_center: str = ""
    tax_status: str = ""
    sale_confirmed: str = ""
    exchange_flag: str = ""
    exchange_value: float = 0.0


class RecordPatchModel(BaseModel):
    date: Optional[dt.date] = None
    customer: Optional[str] = None
    product: Optional[str] = None
    quantity: Optional[float] = None
    unit_value: Optional[float] = None
    total_value: Optional[float] = None
    route: Optional[str] = None
    exchange_value: Optional[float] = None
