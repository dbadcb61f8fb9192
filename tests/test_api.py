import pytest
from fastapi.testclient import TestClient

import api.main as api_main
import core.data as core_data
from core.data import RecordStore

from .conftest import FakeSource


@pytest.fixture
def client(monkeypatch, store):
    monkeypatch.setattr(core_data, "get_store", lambda: store)
    monkeypatch.setattr(api_main, "get_store", lambda: store)
    return TestClient(api_main.app)


def test_overview_with_full_criteria(client):
    body = {
        "id": "",
        "customer": "",
        "route": "",
        "product": "",
        "date_range": {"start": "2024-01-01", "end": "2024-12-31"},
        "min_quantity": None,
        "min_value": None,
    }
    resp = client.post("/overview", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["kpis"]["order_count"] == 3
    assert data["filters"]["date_range"] == {"start": "2024-01-01", "end": "2024-12-31"}


def test_empty_body_means_no_filters(client):
    resp = client.post("/table", json={})
    assert resp.status_code == 200
    assert resp.json()["total"] == 6


def test_performance_limit(client):
    resp = client.post("/performance?limit=1", json={})
    assert resp.status_code == 200
    assert len(resp.json()["top_products_value"]) == 1


def test_invalid_limit_is_rejected(client):
    assert client.post("/performance?limit=0", json={}).status_code == 422


def test_trends_and_debug(client):
    assert client.post("/trends", json={}).json()["year_over_year"]["years"] == ["2023", "2024"]
    assert client.post("/debug", json={"customer": "zé"}).json()["row_counts"]["filtered"] == 2


def test_meta_lists(client):
    assert client.get("/meta/routes").json() == {"values": ["Rota 1", "Rota 2", "Rota 3"]}
    assert "Padaria Sol" in client.get("/meta/customers").json()["values"]
    assert "Tróca Pão" in client.get("/meta/products").json()["values"]
    assert client.get("/meta/kpis").json()["kpis"][0]["key"] == "average_ticket"


def test_export_csv(client):
    resp = client.post("/export", json={"route": "rota 3"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("id,date,")
    assert len(lines) == 2


def test_fetch_failure_is_reported_as_bad_gateway(monkeypatch):
    failing = RecordStore(FakeSource(error="Google Sheets API error: denied"), mutation_latency=0)
    monkeypatch.setattr(core_data, "get_store", lambda: failing)
    monkeypatch.setattr(api_main, "get_store", lambda: failing)
    client = TestClient(api_main.app)
    resp = client.post("/overview", json={})
    assert resp.status_code == 502
    assert resp.json() == {"error": "Google Sheets API error: denied", "type": "FetchError"}


def test_export_fetch_failure_is_reported_as_bad_gateway(monkeypatch):
    failing = RecordStore(FakeSource(error="Google Sheets API error: denied"), mutation_latency=0)
    monkeypatch.setattr(core_data, "get_store", lambda: failing)
    monkeypatch.setattr(api_main, "get_store", lambda: failing)
    client = TestClient(api_main.app)
    resp = client.post("/export", json={})
    assert resp.status_code == 502
    assert resp.json() == {"error": "Google Sheets API error: denied", "type": "FetchError"}


def test_refresh_failure_keeps_data(client, store):
    assert client.post("/refresh").json()["records"] == 6
    store._source.error = "Google Sheets API error: quota"
    resp = client.post("/refresh")
    assert resp.status_code == 502
    assert resp.json()["records"] == 6
    assert client.post("/table", json={}).json()["total"] == 6


def test_mutations_are_stubs(client):
    added = client.post("/records", json={"product": "Novo", "total_value": 10})
    assert added.status_code == 200
    assert added.json()["persisted"] is False
    assert added.json()["record"]["product"] == "Novo"
    assert client.put("/records/1", json={"quantity": 3}).json() == {"id": "1", "persisted": False}
    assert client.delete("/records/1").json() == {"id": "1", "persisted": False}
    assert client.post("/table", json={}).json()["total"] == 6
