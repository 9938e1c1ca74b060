"""Tests for the HTTP API and the MCP tools against a temp-dir store."""

import pytest
from fastapi.testclient import TestClient

from conftest import make_doc, make_metric

from bottomtick import app as app_module
from bottomtick.app import app
from bottomtick.errors import UpstreamFetchError
from bottomtick.models import TickerEntry
from bottomtick.storage import save_facts, save_ticker_map


@pytest.fixture
def client(store):
    save_ticker_map({
        "AAPL": TickerEntry(cik="0000320193", title="Apple Inc."),
        "MSFT": TickerEntry(cik="0000789019", title="MICROSOFT CORP"),
    })
    save_facts(320193, make_doc({
        "Revenues": make_metric([100.0 + 5 * i for i in range(30)], start_year=2017),
        "NetIncomeLoss": make_metric([20.0 + i for i in range(30)], start_year=2017),
        "LongTermDebt": make_metric([50.0] * 8, start_year=2022),
    }))
    return TestClient(app)


def test_health(client):
    body = client.get("/health").json()
    assert body == {"status": "ok", "tickers": 2, "factsDir": True}


def test_list_tickers(client):
    body = client.get("/api/tickers").json()
    assert body["AAPL"] == {"cik": "0000320193", "title": "Apple Inc."}


def test_ticker_default_view(client):
    resp = client.get("/api/tickers/aapl")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ticker"] == "AAPL"
    assert body["cik"] == "0000320193"
    assert body["title"] == "Apple Inc."
    assert body["entityName"] == "Apple Inc."
    assert body["view"] == "default"
    assert body["financialData"] == "available"
    assert "EntityCommonStockSharesOutstanding" in body["facts"]["dei"]
    assert [m["key"] for m in body["metrics"]] == ["Revenues", "NetIncomeLoss"]
    assert body["periods"][0] == "2024-Q2"

    revenues = body["metrics"][0]
    assert revenues["unit"] == "USD"
    assert revenues["dataPoints"][0]["period"] == "2024-Q2"
    assert revenues["trend"]["overallTrend"] == "up"
    assert revenues["trend"]["shortTermTrend"] in ("up", "neutral")


def test_ticker_views(client):
    body = client.get("/api/tickers/AAPL", params={"view": "quarterly", "window": 6}).json()
    assert list(body["categories"]) == ["Revenue & Income", "Liabilities"]
    assert len(body["metrics"][0]["trend"]["quarterlyTrends"]) == 6

    body = client.get("/api/tickers/AAPL", params={"view": "charts"}).json()
    assert all(len(m["dataPoints"]) <= 24 for m in body["metrics"])

    body = client.get("/api/tickers/AAPL", params={"view": "bogus"}).json()
    assert body["view"] == "bogus"
    assert [m["key"] for m in body["metrics"]] == ["Revenues", "NetIncomeLoss"]


def test_unknown_ticker_404(client):
    resp = client.get("/api/tickers/ZZZZ")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Ticker ZZZZ not found"}


def test_known_ticker_without_facts(client):
    resp = client.get("/api/tickers/MSFT")
    assert resp.status_code == 200
    body = resp.json()
    assert body["financialData"] == "not_loaded"
    assert body["metrics"] == []
    assert body["periods"] == []
    assert body["entityName"] is None
    assert body["facts"] is None


def test_unexpected_error_500(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(app_module, "get_ticker_data", boom)
    resp = client.get("/api/tickers/AAPL")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch ticker data"}


def test_table(client):
    body = client.get("/api/tickers/AAPL/table", params={"view": "balance"}).json()
    assert body["columns"][0] == "2023-Q4"
    assert body["rows"] == [
        {"metric": "Long Term Debt", "unit": "USD", "values": [50.0] * 8},
    ]


def test_update_tickers(client, monkeypatch):
    monkeypatch.setattr(
        app_module, "update_ticker_map",
        lambda: {"success": True, "count": 3, "message": "Ticker list updated successfully"},
    )
    resp = client.post("/api/tickers/update")
    assert resp.status_code == 200
    assert resp.json()["count"] == 3


def test_update_tickers_upstream_failure(client, monkeypatch):
    def fail():
        raise UpstreamFetchError(503, "Service Unavailable")

    monkeypatch.setattr(app_module, "update_ticker_map", fail)
    resp = client.post("/api/tickers/update")
    assert resp.status_code == 502
    assert resp.json() == {
        "error": "Failed to update ticker list",
        "status": 503,
        "details": "Service Unavailable",
    }


# --- MCP tools ---


def _call(tool, **kwargs):
    # fastmcp wraps decorated functions in a Tool object that keeps the original as .fn
    return getattr(tool, "fn", tool)(**kwargs)


def test_mcp_tools(client):
    from bottomtick import server

    assert _call(server.lookup_ticker, symbol="aapl") == {
        "ticker": "AAPL", "cik": "0000320193", "title": "Apple Inc.",
    }
    assert "error" in _call(server.lookup_ticker, symbol="ZZZZ")

    view = _call(server.get_ticker_view, query="AAPL.b", window=3)
    assert [m["key"] for m in view["metrics"]] == ["LongTermDebt"]

    trends = _call(server.get_metric_trends, symbol="AAPL", metric="net income loss", window=3)
    assert trends["metric"] == "NetIncomeLoss"
    assert trends["trend"]["overallTrend"] == "up"
    assert len(trends["series"]) == 30
    assert "error" in _call(server.get_metric_trends, symbol="MSFT", metric="Revenues")


def test_mcp_view_without_facts_keeps_entity_fields(client):
    from bottomtick import server

    view = _call(server.get_ticker_view, query="MSFT", window=3)
    assert view["financialData"] == "not_loaded"
    assert view["entityName"] is None
    assert view["facts"] is None
