"""Core (UI-agnostic) dashboard logic.

This package contains:
- the record source (Google Sheets rows -> pandas) and the in-memory store
- sale/exchange classification by product name
- filter normalization and the filter engine
- aggregations and KPI math
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
