from typing import Literal

from pydantic import ConfigDict, EmailStr, Field, field_validator

from stockfolio.models import CamelModel, normalize_symbol

QUOTE_SOURCE_ALPHA_VANTAGE = "alphavantage"
QUOTE_SOURCE_MOCK = "mock"
QuoteSource = Literal[QUOTE_SOURCE_ALPHA_VANTAGE, QUOTE_SOURCE_MOCK]

STORE_BACKEND_MEMORY = "memory"
STORE_BACKEND_DYNAMODB = "dynamodb"
StoreBackend = Literal[STORE_BACKEND_MEMORY, STORE_BACKEND_DYNAMODB]


class ErrorResponse(CamelModel):
    detail: str


class MessageResponse(CamelModel):
    message: str


class HealthResponse(CamelModel):
    status: str
    quote_source: QuoteSource
    store_backend: StoreBackend


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)


class SignupResponse(CamelModel):
    owner_id: str
    message: str = "User registered"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str | None = None


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int


class HoldingCreateRequest(CamelModel):
    symbol: str
    quantity: float = Field(gt=0)
    purchase_price: float = Field(gt=0)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return normalize_symbol(value)


class HoldingUpdateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    symbol: str | None = None
    quantity: float | None = Field(default=None, gt=0)
    purchase_price: float | None = Field(default=None, gt=0)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_symbol(value)

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude_none=True)
