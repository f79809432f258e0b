from fastapi import APIRouter, Depends, status

from stockfolio import accounts
from stockfolio.dependencies import AppContext, get_context
from stockfolio.schemas import ErrorResponse, LoginRequest, SignupRequest, SignupResponse, TokenResponse

router = APIRouter(
    tags=["Auth"],
    responses={400: {"model": ErrorResponse, "description": "Validation error"}},
)


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignupRequest, context: AppContext = Depends(get_context)) -> SignupResponse:
    user = await accounts.signup(context.user_store, request.email, request.password)
    return SignupResponse(owner_id=user.owner_id)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, context: AppContext = Depends(get_context)) -> TokenResponse:
    token = await accounts.login(context.user_store, context.settings, request.email, request.password)
    return TokenResponse(token=token, expires_in=context.settings.access_token_ttl_seconds)
