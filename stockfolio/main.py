from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockfolio.aggregator import PortfolioAggregator
from stockfolio.alpha_vantage_client import AlphaVantageClient
from stockfolio.config import Settings, settings
from stockfolio.dependencies import AppContext
from stockfolio.errors import StockfolioError
from stockfolio.middleware import RateLimitMiddleware, RequestLoggingMiddleware
from stockfolio.quote_sources import build_quote_provider
from stockfolio.quote_sources.alpha_vantage_provider import AlphaVantageQuoteProvider
from stockfolio.quote_sources.base import QuoteProvider
from stockfolio.routers import admin, auth, portfolio, stocks
from stockfolio.schemas import HealthResponse
from stockfolio.stores import build_stores
from stockfolio.stores.base import HoldingsStore, UserStore
from stockfolio.telemetry import configure_logging, get_logger

configure_logging(
    level=settings.log_level,
    log_format=settings.log_format,
    include_stack=settings.log_include_stack,
    redact_fields_raw=settings.log_redact_fields,
)
logger = get_logger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


def build_context(
    app_settings: Settings,
    *,
    holdings_store: HoldingsStore | None = None,
    user_store: UserStore | None = None,
    quote_provider: QuoteProvider | None = None,
) -> AppContext:
    if holdings_store is None or user_store is None:
        default_holdings, default_users = build_stores(app_settings, create_tables=app_settings.dynamodb_create_tables)
        holdings_store = holdings_store or default_holdings
        user_store = user_store or default_users

    if quote_provider is None:
        api_provider = AlphaVantageQuoteProvider(
            AlphaVantageClient(
                base_url=app_settings.alpha_vantage_base_url,
                api_key=app_settings.alpha_vantage_api_key,
                timeout_seconds=app_settings.request_timeout_seconds,
            )
        )
        quote_provider = build_quote_provider(app_settings.quote_source, api_provider)

    return AppContext(
        settings=app_settings,
        holdings_store=holdings_store,
        user_store=user_store,
        quote_provider=quote_provider,
        aggregator=PortfolioAggregator(holdings_store, quote_provider),
    )


def create_app(
    app_settings: Settings | None = None,
    *,
    holdings_store: HoldingsStore | None = None,
    user_store: UserStore | None = None,
    quote_provider: QuoteProvider | None = None,
) -> FastAPI:
    app_settings = app_settings or settings
    app = FastAPI(title=app_settings.project_name, version="0.1.0")
    app.state.context = build_context(
        app_settings,
        holdings_store=holdings_store,
        user_store=user_store,
        quote_provider=quote_provider,
    )

    # Last added is outermost: CORS, then request logging, then the rate limit
    app.add_middleware(
        RateLimitMiddleware,
        calls=app_settings.rate_limit_requests,
        period=app_settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(auth.router)
    app.include_router(portfolio.router)
    app.include_router(stocks.router)
    app.include_router(admin.router)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            quote_source=app_settings.quote_source,
            store_backend=app_settings.store_backend,
        )

    @app.exception_handler(StockfolioError)
    async def stockfolio_error_handler(request: Request, exc: StockfolioError) -> JSONResponse:
        logger.info(
            "request_failed",
            extra={"path": request.url.path, "status_code": exc.status_code, "error": exc.message},
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _format_validation_error(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", exc_info=exc, extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal error occurred. Please try again later."},
        )

    logger.info(
        "app_created",
        extra={"quote_source": app_settings.quote_source, "store_backend": app_settings.store_backend},
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stockfolio.main:app", host="0.0.0.0", port=8000)
