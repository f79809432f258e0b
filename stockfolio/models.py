"""Domain types shared by the stores, the quote providers and the aggregator.

Attributes are snake_case in Python and camelCase on the wire.
"""

import re
from datetime import date, datetime, timezone
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.\-^=]{1,15}$")
PRICE_LOOKUP_FAILED = "Failed to fetch current price"

LookupFailureReason = Literal["not_found", "unavailable", "malformed"]


def normalize_symbol(value: str) -> str:
    symbol = value.strip().upper()
    if not SYMBOL_PATTERN.match(symbol):
        raise ValueError(f"Invalid ticker symbol '{value}'")
    return symbol


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Holding(CamelModel):
    id: str
    owner_id: str
    symbol: str
    quantity: float
    purchase_price: float


class Quote(CamelModel):
    symbol: str
    current_price: float
    change_absolute: float | None = None
    change_percent: float | None = None
    volume: int | None = None
    as_of_date: date | None = None


class LookupFailure(CamelModel):
    symbol: str
    reason: LookupFailureReason
    message: str


QuoteLookup = Quote | LookupFailure


class ValuedHolding(Holding):
    status: Literal["valued"] = "valued"
    current_price: float
    total_value: float
    profit_loss: float


class FailedHolding(Holding):
    status: Literal["failed"] = "failed"
    error: str = PRICE_LOOKUP_FAILED
    reason: LookupFailureReason | Literal["error"] = "error"


HoldingValuation = Annotated[ValuedHolding | FailedHolding, Field(discriminator="status")]


class PortfolioSummary(CamelModel):
    stocks: list[HoldingValuation] = Field(default_factory=list)
    total_value: float = 0.0
    total_profit_loss: float = 0.0


class User(CamelModel):
    owner_id: str
    email: str
    password_hash: str
    role: str = "user"
    is_admin: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
