"""Portfolio valuation: one concurrent quote lookup per holding, settled as a group.

A lookup that fails, for whatever reason, only degrades its own holding to a
``FailedHolding``. The only error that escapes ``value_portfolio`` is the
holdings store read.
"""

import asyncio

from stockfolio.models import (
    FailedHolding,
    Holding,
    HoldingValuation,
    LookupFailure,
    PortfolioSummary,
    QuoteLookup,
    ValuedHolding,
)
from stockfolio.quote_sources.base import QuoteProvider
from stockfolio.stores.base import HoldingsStore
from stockfolio.telemetry import get_logger


logger = get_logger(__name__)


def value_holding(holding: Holding, lookup: QuoteLookup | BaseException) -> HoldingValuation:
    fields = holding.model_dump()
    if isinstance(lookup, BaseException):
        return FailedHolding(**fields, reason="error")
    if isinstance(lookup, LookupFailure):
        return FailedHolding(**fields, reason=lookup.reason)

    current_price = lookup.current_price
    return ValuedHolding(
        **fields,
        current_price=current_price,
        total_value=current_price * holding.quantity,
        profit_loss=(current_price - holding.purchase_price) * holding.quantity,
    )


def summarize(stocks: list[HoldingValuation]) -> PortfolioSummary:
    valued = [stock for stock in stocks if isinstance(stock, ValuedHolding)]
    return PortfolioSummary(
        stocks=stocks,
        total_value=sum(stock.total_value for stock in valued),
        total_profit_loss=sum(stock.profit_loss for stock in valued),
    )


class PortfolioAggregator:
    def __init__(self, holdings_store: HoldingsStore, quote_provider: QuoteProvider) -> None:
        self.holdings_store = holdings_store
        self.quote_provider = quote_provider

    async def value_portfolio(self, owner_id: str) -> PortfolioSummary:
        holdings = await self.holdings_store.list_for_owner(owner_id)
        if not holdings:
            return PortfolioSummary()

        lookups = await asyncio.gather(
            *(self.quote_provider.fetch_quote(holding.symbol) for holding in holdings),
            return_exceptions=True,
        )

        stocks: list[HoldingValuation] = []
        for holding, lookup in zip(holdings, lookups):
            if isinstance(lookup, BaseException):
                logger.warning(
                    "quote_lookup_raised",
                    extra={"owner_id": owner_id, "symbol": holding.symbol, "error": repr(lookup)},
                )
            stocks.append(value_holding(holding, lookup))

        summary = summarize(stocks)
        logger.info(
            "portfolio_valued",
            extra={
                "owner_id": owner_id,
                "holdings_count": len(holdings),
                "failed_count": sum(1 for stock in stocks if isinstance(stock, FailedHolding)),
                "total_value": summary.total_value,
            },
        )
        return summary
