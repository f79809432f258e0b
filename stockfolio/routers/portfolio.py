from fastapi import APIRouter, Depends, status

from stockfolio import holdings
from stockfolio.dependencies import AppContext, CurrentUser, get_context, get_current_user
from stockfolio.models import Holding, PortfolioSummary
from stockfolio.schemas import ErrorResponse, HoldingCreateRequest, HoldingUpdateRequest, MessageResponse

router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
        403: {"model": ErrorResponse, "description": "Token required"},
        500: {"model": ErrorResponse, "description": "Storage error"},
    },
)


@router.post("/add", response_model=Holding, status_code=status.HTTP_201_CREATED)
async def add_holding(
    request: HoldingCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> Holding:
    return await holdings.add_holding(
        context.holdings_store,
        current_user.owner_id,
        request.symbol,
        request.quantity,
        request.purchase_price,
    )


@router.get("", response_model=PortfolioSummary)
async def get_portfolio(
    current_user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> PortfolioSummary:
    return await context.aggregator.value_portfolio(current_user.owner_id)


@router.put("/{holding_id}", response_model=Holding, responses={404: {"model": ErrorResponse}})
async def update_holding(
    holding_id: str,
    request: HoldingUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> Holding:
    return await holdings.update_holding(
        context.holdings_store,
        current_user.owner_id,
        holding_id,
        request.changes(),
    )


@router.delete("/{holding_id}", response_model=MessageResponse, responses={404: {"model": ErrorResponse}})
async def delete_holding(
    holding_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> MessageResponse:
    await holdings.delete_holding(context.holdings_store, current_user.owner_id, holding_id)
    return MessageResponse(message="Stock removed")
