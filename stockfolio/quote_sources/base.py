from typing import Protocol

from stockfolio.models import QuoteLookup


class QuoteProvider(Protocol):
    async def fetch_quote(self, symbol: str) -> QuoteLookup:
        """Resolve one symbol; lookup failures are returned, not raised."""
        ...
