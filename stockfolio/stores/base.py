from typing import Any, Protocol

from stockfolio.models import Holding, User


class HoldingsStore(Protocol):
    async def add(self, owner_id: str, symbol: str, quantity: float, purchase_price: float) -> Holding: ...

    async def get(self, holding_id: str) -> Holding | None: ...

    async def list_for_owner(self, owner_id: str) -> list[Holding]: ...

    async def list_all(self) -> list[Holding]: ...

    async def update(self, holding_id: str, changes: dict[str, Any]) -> Holding: ...

    async def delete(self, holding_id: str) -> None: ...


class UserStore(Protocol):
    async def create(self, user: User) -> User:
        """Persist a new account; raises ValidationError if the email is taken."""
        ...

    async def get_by_email(self, email: str) -> User | None: ...
