import pytest
from pydantic import ValidationError

from core.config import DEFAULT_CORS_ORIGINS, DEFAULT_RANGE, ApiSettings, SheetSettings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "SHEETS_ID",
        "SHEETS_API_KEY",
        "SHEETS_RANGE",
        "SHEETS_BASE_URL",
        "SHEETS_TIMEOUT",
        "SHEETS_MUTATION_LATENCY",
        "DASHBOARD_CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_sheet_settings_from_env(monkeypatch):
    monkeypatch.setenv("SHEETS_ID", " abc ")
    monkeypatch.setenv("SHEETS_API_KEY", "k")
    monkeypatch.setenv("SHEETS_TIMEOUT", "12")
    monkeypatch.setenv("SHEETS_MUTATION_LATENCY", "-1")
    settings = SheetSettings(_env_file=None)
    assert settings.sheet_id == "abc"
    assert settings.configured
    assert settings.range == DEFAULT_RANGE
    assert settings.timeout == 12.0
    assert settings.mutation_latency == 0.0
    assert settings.values_url.endswith("/abc/values/BD!A1:Q")


def test_sheet_settings_defaults():
    settings = SheetSettings(_env_file=None)
    assert not settings.configured
    assert settings.timeout == 30.0
    assert settings.mutation_latency == 1.0


def test_sheet_settings_keyword_arguments():
    settings = SheetSettings(_env_file=None, sheet_id="s", api_key="k", timeout=5.0)
    assert settings.configured
    assert settings.timeout == 5.0


def test_invalid_number_is_rejected(monkeypatch):
    monkeypatch.setenv("SHEETS_TIMEOUT", "soon")
    with pytest.raises(ValidationError):
        SheetSettings(_env_file=None)


def test_settings_are_frozen():
    settings = SheetSettings(_env_file=None)
    with pytest.raises(ValidationError):
        settings.timeout = 1.0


def test_api_settings(monkeypatch):
    assert ApiSettings(_env_file=None).cors_origins == DEFAULT_CORS_ORIGINS
    monkeypatch.setenv("DASHBOARD_CORS_ORIGINS", "http://a, http://b,")
    assert ApiSettings(_env_file=None).cors_origins == ["http://a", "http://b"]
