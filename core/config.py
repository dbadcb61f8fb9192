from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_RANGE = "BD!A1:Q"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


class SheetSettings(BaseSettings):
    """Google Sheets source, read from ``SHEETS_*`` variables (or ``.env``)."""

    sheet_id: str = Field(default="", validation_alias=AliasChoices("sheet_id", "SHEETS_ID"))
    api_key: str = ""
    range: str = DEFAULT_RANGE
    base_url: str = SHEETS_BASE_URL
    timeout: float = 30.0
    mutation_latency: float = 1.0

    model_config = SettingsConfigDict(
        env_prefix="SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    @field_validator("mutation_latency")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return max(0.0, v)

    @property
    def configured(self) -> bool:
        return bool(self.sheet_id and self.api_key)

    @property
    def values_url(self) -> str:
        return f"{self.base_url}/{self.sheet_id}/values/{self.range}"


class ApiSettings(BaseSettings):
    # Comma separated, e.g. "http://localhost:3000,https://dash.example.com"
    cors_origins_raw: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("cors_origins_raw", "DASHBOARD_CORS_ORIGINS")
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @property
    def cors_origins(self) -> List[str]:
        v = self.cors_origins_raw
        if not v:
            return list(DEFAULT_CORS_ORIGINS)
        return [s.strip() for s in v.split(",") if s.strip()]


@lru_cache(maxsize=1)
def get_sheet_settings() -> SheetSettings:
    return SheetSettings()
