from typing import Any

import httpx

from stockfolio.telemetry import get_logger


logger = get_logger(__name__)


class AlphaVantageClient:
    """Thin async wrapper over the Alpha Vantage query endpoint.

    One HTTP request per call. Transport and status errors propagate to the
    caller; the quote provider decides what they mean.
    """

    def __init__(self, base_url: str, api_key: str, timeout_seconds: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.get(url, headers=self._headers(), params=params)
        response.raise_for_status()
        logger.debug(
            "alpha_vantage_http_success",
            extra={
                "url": url,
                "function": params.get("function"),
                "symbol": params.get("symbol"),
                "status_code": response.status_code,
            },
        )
        return response.json()

    async def get_global_quote(self, symbol: str) -> Any:
        return await self._get(
            "/query",
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key},
        )
