import httpx
import pytest

from stockfolio.alpha_vantage_client import AlphaVantageClient


@pytest.mark.asyncio
async def test_get_global_quote_calls_query_endpoint(monkeypatch: pytest.MonkeyPatch):
    client = AlphaVantageClient("https://www.alphavantage.co/", api_key="demo", timeout_seconds=5.0)
    captured: dict[str, object] = {}

    async def fake_get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ):
        captured["url"] = url
        captured["params"] = params
        return httpx.Response(200, json={"Global Quote": {}}, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get)
    result = await client.get_global_quote("IBM")

    assert result == {"Global Quote": {}}
    assert captured["url"] == "https://www.alphavantage.co/query"
    assert captured["params"] == {"function": "GLOBAL_QUOTE", "symbol": "IBM", "apikey": "demo"}


@pytest.mark.asyncio
async def test_get_does_not_retry_on_network_error(monkeypatch: pytest.MonkeyPatch):
    client = AlphaVantageClient("https://www.alphavantage.co", api_key="demo")
    attempts = {"count": 0}

    async def fake_get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ):
        attempts["count"] += 1
        raise httpx.ConnectError("network down", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get)
    with pytest.raises(httpx.ConnectError):
        await client.get_global_quote("IBM")
    assert attempts["count"] == 1


@pytest.mark.asyncio
async def test_get_raises_on_http_status_error(monkeypatch: pytest.MonkeyPatch):
    client = AlphaVantageClient("https://www.alphavantage.co", api_key="demo")

    async def fake_get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ):
        return httpx.Response(500, json={"error": "server"}, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get)
    with pytest.raises(httpx.HTTPStatusError):
        await client.get_global_quote("IBM")
