import math
from datetime import date
from typing import Any

import httpx

from stockfolio.alpha_vantage_client import AlphaVantageClient
from stockfolio.models import LookupFailure, LookupFailureReason, Quote, QuoteLookup
from stockfolio.telemetry import get_logger


logger = get_logger(__name__)


class AlphaVantageQuoteProvider:
    def __init__(self, client: AlphaVantageClient) -> None:
        self.client = client

    @staticmethod
    def _parse_optional_float(value: Any) -> float | None:
        try:
            if value is None:
                return None
            if isinstance(value, str):
                value = value.strip().rstrip("%")
            parsed = float(value)
        except (TypeError, ValueError):
            return None
        return parsed if math.isfinite(parsed) else None

    @staticmethod
    def _parse_optional_int(value: Any) -> int | None:
        try:
            if value is None:
                return None
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _parse_optional_date(value: Any) -> date | None:
        if not isinstance(value, str):
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None

    @staticmethod
    def _failure(symbol: str, reason: LookupFailureReason, message: str) -> LookupFailure:
        logger.warning(
            "quote_lookup_failed",
            extra={"symbol": symbol, "reason": reason, "error": message},
        )
        return LookupFailure(symbol=symbol, reason=reason, message=message)

    async def fetch_quote(self, symbol: str) -> QuoteLookup:
        try:
            payload = await self.client.get_global_quote(symbol)
        except httpx.HTTPError as exc:
            return self._failure(symbol, "unavailable", f"Quote provider request failed: {exc}")
        except ValueError as exc:
            return self._failure(symbol, "malformed", f"Quote provider returned invalid JSON: {exc}")
        return self._parse_global_quote(symbol, payload)

    def _parse_global_quote(self, symbol: str, payload: Any) -> QuoteLookup:
        if not isinstance(payload, dict):
            return self._failure(symbol, "malformed", "Expected a JSON object from Alpha Vantage")

        # Request-level problems (bad or missing apikey, bad parameters); unknown symbols come back empty
        for notice_key in ("Error Message", "Note", "Information"):
            if notice_key in payload:
                return self._failure(symbol, "unavailable", str(payload[notice_key]))

        quote = payload.get("Global Quote")
        if not isinstance(quote, dict) or not quote:
            return self._failure(symbol, "not_found", f"No quote found for '{symbol}'")

        current_price = self._parse_optional_float(quote.get("05. price"))
        if current_price is None:
            return self._failure(symbol, "malformed", "Quote has invalid required numeric field '05. price'")

        return Quote(
            symbol=quote.get("01. symbol") or symbol,
            current_price=current_price,
            change_absolute=self._parse_optional_float(quote.get("09. change")),
            change_percent=self._parse_optional_float(quote.get("10. change percent")),
            volume=self._parse_optional_int(quote.get("06. volume")),
            as_of_date=self._parse_optional_date(quote.get("07. latest trading day")),
        )
