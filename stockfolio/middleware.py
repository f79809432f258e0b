import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from stockfolio.telemetry import get_logger


logger = get_logger(__name__)

EXEMPT_PATHS = {"/health", "/docs", "/openapi.json"}


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request budget per client IP, shared across the process."""

    def __init__(self, app, calls: int = 100, period: int = 900, clock: Callable[[], float] = time.time):
        super().__init__(app)
        self.calls = calls
        self.period = period
        self.clock = clock
        self.windows: dict[str, _Window] = {}
        self._last_sweep = clock()

    def _sweep_expired(self, now: float) -> None:
        if now - self._last_sweep < self.period:
            return
        expired = [ip for ip, window in self.windows.items() if now - window.started_at >= self.period]
        for ip in expired:
            del self.windows[ip]
        self._last_sweep = now

    def _window_for(self, client_ip: str, now: float) -> _Window:
        self._sweep_expired(now)
        window = self.windows.get(client_ip)
        if window is None or now - window.started_at >= self.period:
            window = _Window(started_at=now)
            self.windows[client_ip] = window
        return window

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = self.clock()
        window = self._window_for(client_ip, now)
        reset_at = int(window.started_at + self.period)

        if window.count >= self.calls:
            retry_after = max(reset_at - int(now), 1)
            logger.warning("rate_limit_exceeded", extra={"client_ip": client_ip, "path": request.url.path})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests, please try again later."},
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.calls),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_at),
                },
            )

        window.count += 1
        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.calls)
        response.headers["X-RateLimit-Remaining"] = str(max(self.calls - window.count, 0))
        response.headers["X-RateLimit-Reset"] = str(reset_at)
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "http_request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response
