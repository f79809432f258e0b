import uuid
from typing import Any

from stockfolio.errors import NotFoundError, ValidationError
from stockfolio.models import Holding, User


class InMemoryHoldingsStore:
    """Process-local holdings keyed by store-assigned id.

    Methods never await, so each one runs atomically on the event loop.
    """

    def __init__(self) -> None:
        self._holdings: dict[str, Holding] = {}

    async def add(self, owner_id: str, symbol: str, quantity: float, purchase_price: float) -> Holding:
        holding = Holding(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            symbol=symbol,
            quantity=quantity,
            purchase_price=purchase_price,
        )
        self._holdings[holding.id] = holding
        return holding.model_copy()

    async def get(self, holding_id: str) -> Holding | None:
        holding = self._holdings.get(holding_id)
        return holding.model_copy() if holding else None

    async def list_for_owner(self, owner_id: str) -> list[Holding]:
        return [h.model_copy() for h in self._holdings.values() if h.owner_id == owner_id]

    async def list_all(self) -> list[Holding]:
        return [h.model_copy() for h in self._holdings.values()]

    async def update(self, holding_id: str, changes: dict[str, Any]) -> Holding:
        current = self._holdings.get(holding_id)
        if current is None:
            raise NotFoundError("Holding not found")
        updated = current.model_copy(update=changes)
        self._holdings[holding_id] = updated
        return updated.model_copy()

    async def delete(self, holding_id: str) -> None:
        if self._holdings.pop(holding_id, None) is None:
            raise NotFoundError("Holding not found")


class InMemoryUserStore:
    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    async def create(self, user: User) -> User:
        key = user.email.lower()
        if key in self._users:
            raise ValidationError("Email already registered")
        self._users[key] = user
        return user.model_copy()

    async def get_by_email(self, email: str) -> User | None:
        user = self._users.get(email.lower())
        return user.model_copy() if user else None
