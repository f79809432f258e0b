from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from stockfolio.aggregator import PortfolioAggregator
from stockfolio.config import Settings
from stockfolio.errors import ForbiddenError
from stockfolio.quote_sources.base import QuoteProvider
from stockfolio.security import decode_token
from stockfolio.stores.base import HoldingsStore, UserStore


authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


@dataclass
class AppContext:
    settings: Settings
    holdings_store: HoldingsStore
    user_store: UserStore
    quote_provider: QuoteProvider
    aggregator: PortfolioAggregator


@dataclass
class CurrentUser:
    owner_id: str
    email: str | None = None
    is_admin: bool = False


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _extract_token(header_value: str | None) -> str | None:
    if not header_value:
        return None
    scheme, _, credentials = header_value.strip().partition(" ")
    if scheme.lower() == "bearer":
        return credentials.strip() or None
    # A bare token without the scheme prefix is accepted as well.
    return header_value.strip()


async def get_current_user(
    authorization: str | None = Depends(authorization_header),
    context: AppContext = Depends(get_context),
) -> CurrentUser:
    token = _extract_token(authorization)
    if token is None:
        raise ForbiddenError("Token required")

    claims = decode_token(token, context.settings)
    return CurrentUser(
        owner_id=claims["sub"],
        email=claims.get("email"),
        is_admin=claims.get("admin") is True,
    )


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise ForbiddenError("Admin access only")
    return current_user
