from pydantic_settings import BaseSettings, SettingsConfigDict

from stockfolio.schemas import QuoteSource, StoreBackend


class Settings(BaseSettings):
    project_name: str = "Stockfolio API"

    # Auth
    jwt_secret_key: str = "dev-only-insecure-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 3600
    login_requires_password: bool = False

    # Quote provider
    quote_source: QuoteSource = "alphavantage"
    alpha_vantage_api_key: str = ""
    alpha_vantage_base_url: str = "https://www.alphavantage.co"
    request_timeout_seconds: float = 10.0

    # Storage
    store_backend: StoreBackend = "memory"
    dynamodb_region: str = "us-east-1"
    dynamodb_endpoint: str | None = None  # For local development
    dynamodb_holdings_table: str = "portfolios"
    dynamodb_users_table: str = "users"
    dynamodb_create_tables: bool = False

    # Rate limiting (fixed window per client IP)
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    cors_origins: list[str] = ["*"]

    log_level: str = "INFO"
    log_format: str = "json"
    log_include_stack: bool = False
    log_redact_fields: str = "authorization,password,password_hash,token,apikey,jwt_secret_key"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="STOCKFOLIO_")


settings = Settings()
