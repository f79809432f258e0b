from stockfolio.quote_sources.alpha_vantage_provider import AlphaVantageQuoteProvider
from stockfolio.quote_sources.base import QuoteProvider
from stockfolio.quote_sources.mock_provider import MockQuoteProvider
from stockfolio.schemas import QUOTE_SOURCE_MOCK, QuoteSource


def build_quote_provider(quote_source: QuoteSource, api_provider: AlphaVantageQuoteProvider) -> QuoteProvider:
    if quote_source == QUOTE_SOURCE_MOCK:
        return MockQuoteProvider()
    return api_provider
