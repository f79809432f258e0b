from datetime import date

from stockfolio.models import LookupFailure, Quote, QuoteLookup

MOCK_QUOTES = {
    "AAPL": {"current_price": 184.0, "change_absolute": 2.18, "change_percent": 1.2, "volume": 51234000},
    "MSFT": {"current_price": 405.0, "change_absolute": -1.22, "change_percent": -0.3, "volume": 20411000},
    "VTI": {"current_price": 280.0, "change_absolute": 1.39, "change_percent": 0.5, "volume": 3120000},
    "NVDA": {"current_price": 121.5, "change_absolute": 3.05, "change_percent": 2.57, "volume": 240500000},
}

MOCK_AS_OF = date(2026, 2, 20)


class MockQuoteProvider:
    async def fetch_quote(self, symbol: str) -> QuoteLookup:
        upper = symbol.upper()
        data = MOCK_QUOTES.get(upper)
        if data is None:
            return LookupFailure(symbol=upper, reason="not_found", message=f"No quote found for '{upper}'")
        return Quote(symbol=upper, as_of_date=MOCK_AS_OF, **data)
