import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from stockfolio.config import Settings
from stockfolio.main import create_app
from stockfolio.middleware import RateLimitMiddleware


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _limited_app(calls: int, period: int, clock: FakeClock) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, calls=calls, period=period, clock=clock)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"status": "pong"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def test_requests_over_budget_get_429():
    clock = FakeClock()
    client = TestClient(_limited_app(calls=2, period=60, clock=clock))

    first = client.get("/ping")
    assert first.status_code == 200
    assert first.headers["X-RateLimit-Limit"] == "2"
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert client.get("/ping").headers["X-RateLimit-Remaining"] == "0"

    blocked = client.get("/ping")
    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == "60"
    assert "Too many requests" in blocked.json()["detail"]


def test_window_resets_after_period():
    clock = FakeClock()
    client = TestClient(_limited_app(calls=1, period=60, clock=clock))

    assert client.get("/ping").status_code == 200
    clock.now += 30
    assert client.get("/ping").status_code == 429
    clock.now += 30
    assert client.get("/ping").status_code == 200


def test_health_is_exempt():
    client = TestClient(_limited_app(calls=1, period=60, clock=FakeClock()))

    assert client.get("/ping").status_code == 200
    for _ in range(3):
        assert client.get("/health").status_code == 200


def test_app_applies_configured_limit():
    app_settings = Settings(quote_source="mock", rate_limit_requests=2, rate_limit_window_seconds=900)
    client = TestClient(create_app(app_settings))

    statuses = [client.post("/login", json={"email": "x@example.com"}).status_code for _ in range(3)]
    assert statuses == [400, 400, 429]


def _request_from(client_ip: str) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/ping",
            "query_string": b"",
            "headers": [],
            "client": (client_ip, 50000),
        }
    )


async def _ok(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


@pytest.mark.asyncio
async def test_expired_client_windows_are_dropped():
    clock = FakeClock()
    middleware = RateLimitMiddleware(FastAPI(), calls=5, period=60, clock=clock)

    for index in range(1000):
        clock.now += 600
        await middleware.dispatch(_request_from(f"10.0.{index // 256}.{index % 256}"), _ok)

    assert list(middleware.windows) == ["10.0.3.231"]


@pytest.mark.asyncio
async def test_active_client_windows_survive_sweep():
    clock = FakeClock()
    middleware = RateLimitMiddleware(FastAPI(), calls=5, period=60, clock=clock)

    await middleware.dispatch(_request_from("10.0.0.1"), _ok)
    clock.now += 50
    await middleware.dispatch(_request_from("10.0.0.2"), _ok)
    clock.now += 20
    await middleware.dispatch(_request_from("10.0.0.3"), _ok)

    assert set(middleware.windows) == {"10.0.0.2", "10.0.0.3"}
    assert middleware.windows["10.0.0.2"].count == 1


def test_cors_wraps_rate_limit():
    app_settings = Settings(quote_source="mock", rate_limit_requests=1, rate_limit_window_seconds=900)
    client = TestClient(create_app(app_settings))
    origin = {"Origin": "https://dashboard.example.com"}

    for _ in range(3):
        preflight = client.options("/login", headers={**origin, "Access-Control-Request-Method": "POST"})
        assert preflight.status_code == 200

    assert client.post("/login", json={"email": "x@example.com"}, headers=origin).status_code == 400
    blocked = client.post("/login", json={"email": "x@example.com"}, headers=origin)
    assert blocked.status_code == 429
    assert blocked.headers["access-control-allow-origin"] == "*"
