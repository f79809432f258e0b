from fastapi import APIRouter, Depends, Query

from stockfolio.dependencies import AppContext, CurrentUser, get_context, get_current_user
from stockfolio.errors import NotFoundError, UpstreamError, ValidationError
from stockfolio.models import LookupFailure, Quote, normalize_symbol
from stockfolio.schemas import ErrorResponse

router = APIRouter(
    prefix="/stocks",
    tags=["Stocks"],
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid symbol"},
        404: {"model": ErrorResponse, "description": "Unknown symbol"},
        502: {"model": ErrorResponse, "description": "Quote provider failure"},
    },
)


@router.get("/live", response_model=Quote)
async def get_live_quote(
    symbol: str | None = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> Quote:
    if not symbol or not symbol.strip():
        raise ValidationError("Symbol is required")
    try:
        normalized = normalize_symbol(symbol)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    lookup = await context.quote_provider.fetch_quote(normalized)
    if isinstance(lookup, LookupFailure):
        if lookup.reason == "not_found":
            raise NotFoundError("Stock not found")
        raise UpstreamError(f"Failed to fetch quote for {normalized}")
    return lookup
