"""DynamoDB-backed stores built on PynamoDB.

PynamoDB is synchronous, so every call is pushed onto a worker thread with
``asyncio.to_thread`` to keep the event loop free for concurrent quote
lookups.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any

from pynamodb.attributes import BooleanAttribute, NumberAttribute, UnicodeAttribute, UTCDateTimeAttribute
from pynamodb.exceptions import DoesNotExist, PynamoDBException
from pynamodb.indexes import AllProjection, GlobalSecondaryIndex
from pynamodb.models import Model

from stockfolio.errors import NotFoundError, StoreError, ValidationError
from stockfolio.models import Holding, User
from stockfolio.telemetry import get_logger


logger = get_logger(__name__)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


class OwnerIndex(GlobalSecondaryIndex):
    class Meta:
        index_name = "owner-index"
        projection = AllProjection()

    owner_id = UnicodeAttribute(hash_key=True)


class HoldingRecord(Model):
    class Meta:
        table_name = "portfolios"
        region = "us-east-1"
        billing_mode = "PAY_PER_REQUEST"

    holding_id = UnicodeAttribute(hash_key=True)
    owner_id = UnicodeAttribute()
    symbol = UnicodeAttribute()
    quantity = NumberAttribute()
    purchase_price = NumberAttribute()
    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))
    updated_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    owner_index = OwnerIndex()

    def to_holding(self) -> Holding:
        return Holding(
            id=self.holding_id,
            owner_id=self.owner_id,
            symbol=self.symbol,
            quantity=float(self.quantity),
            purchase_price=float(self.purchase_price),
        )


class UserRecord(Model):
    class Meta:
        table_name = "users"
        region = "us-east-1"
        billing_mode = "PAY_PER_REQUEST"

    email = UnicodeAttribute(hash_key=True)
    owner_id = UnicodeAttribute()
    password_hash = UnicodeAttribute()
    role = UnicodeAttribute(default="user")
    is_admin = BooleanAttribute(default=False)
    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    def to_user(self) -> User:
        return User(
            owner_id=self.owner_id,
            email=self.email,
            password_hash=self.password_hash,
            role=self.role,
            is_admin=bool(self.is_admin),
            created_at=self.created_at,
        )


def configure_table(model: type[Model], table_name: str, region: str, host: str | None) -> None:
    model.Meta.table_name = table_name
    model.Meta.region = region
    model.Meta.host = host
    # Drop any connection bound to the previous table settings.
    model._connection = None


def _store_error(operation: str, exc: PynamoDBException) -> StoreError:
    logger.error("dynamodb_operation_failed", extra={"operation": operation, "error": str(exc)})
    return StoreError(f"Storage error during {operation}")


class DynamoHoldingsStore:
    _updatable_fields = {
        "symbol": HoldingRecord.symbol,
        "quantity": HoldingRecord.quantity,
        "purchase_price": HoldingRecord.purchase_price,
    }

    def ensure_table(self) -> None:
        if not HoldingRecord.exists():
            logger.info("dynamodb_table_created", extra={"table": HoldingRecord.Meta.table_name})
            HoldingRecord.create_table(wait=True)

    def _add(self, owner_id: str, symbol: str, quantity: float, purchase_price: float) -> Holding:
        record = HoldingRecord(
            holding_id=uuid.uuid4().hex,
            owner_id=owner_id,
            symbol=symbol,
            quantity=quantity,
            purchase_price=purchase_price,
        )
        try:
            record.save()
        except PynamoDBException as exc:
            raise _store_error("add_holding", exc) from exc
        return record.to_holding()

    def _get(self, holding_id: str) -> Holding | None:
        try:
            return HoldingRecord.get(holding_id).to_holding()
        except DoesNotExist:
            return None
        except PynamoDBException as exc:
            raise _store_error("get_holding", exc) from exc

    def _list_for_owner(self, owner_id: str) -> list[Holding]:
        try:
            return [record.to_holding() for record in HoldingRecord.owner_index.query(owner_id)]
        except PynamoDBException as exc:
            raise _store_error("list_holdings", exc) from exc

    def _list_all(self) -> list[Holding]:
        try:
            return [record.to_holding() for record in HoldingRecord.scan()]
        except PynamoDBException as exc:
            raise _store_error("scan_holdings", exc) from exc

    def _update(self, holding_id: str, changes: dict[str, Any]) -> Holding:
        actions = [
            self._updatable_fields[name].set(value)
            for name, value in changes.items()
            if name in self._updatable_fields
        ]
        actions.append(HoldingRecord.updated_at.set(datetime.now(timezone.utc)))
        record = HoldingRecord(holding_id=holding_id)
        try:
            record.update(actions=actions, condition=HoldingRecord.holding_id.exists())
        except PynamoDBException as exc:
            if exc.cause_response_code == CONDITIONAL_CHECK_FAILED:
                raise NotFoundError("Holding not found") from exc
            raise _store_error("update_holding", exc) from exc
        return record.to_holding()

    def _delete(self, holding_id: str) -> None:
        record = HoldingRecord(holding_id=holding_id)
        try:
            record.delete(condition=HoldingRecord.holding_id.exists())
        except PynamoDBException as exc:
            if exc.cause_response_code == CONDITIONAL_CHECK_FAILED:
                raise NotFoundError("Holding not found") from exc
            raise _store_error("delete_holding", exc) from exc

    async def add(self, owner_id: str, symbol: str, quantity: float, purchase_price: float) -> Holding:
        return await asyncio.to_thread(self._add, owner_id, symbol, quantity, purchase_price)

    async def get(self, holding_id: str) -> Holding | None:
        return await asyncio.to_thread(self._get, holding_id)

    async def list_for_owner(self, owner_id: str) -> list[Holding]:
        return await asyncio.to_thread(self._list_for_owner, owner_id)

    async def list_all(self) -> list[Holding]:
        return await asyncio.to_thread(self._list_all)

    async def update(self, holding_id: str, changes: dict[str, Any]) -> Holding:
        return await asyncio.to_thread(self._update, holding_id, changes)

    async def delete(self, holding_id: str) -> None:
        await asyncio.to_thread(self._delete, holding_id)


class DynamoUserStore:
    def ensure_table(self) -> None:
        if not UserRecord.exists():
            logger.info("dynamodb_table_created", extra={"table": UserRecord.Meta.table_name})
            UserRecord.create_table(wait=True)

    def _create(self, user: User) -> User:
        record = UserRecord(
            email=user.email,
            owner_id=user.owner_id,
            password_hash=user.password_hash,
            role=user.role,
            is_admin=user.is_admin,
            created_at=user.created_at,
        )
        try:
            record.save(condition=UserRecord.email.does_not_exist())
        except PynamoDBException as exc:
            if exc.cause_response_code == CONDITIONAL_CHECK_FAILED:
                raise ValidationError("Email already registered") from exc
            raise _store_error("create_user", exc) from exc
        return record.to_user()

    def _get_by_email(self, email: str) -> User | None:
        try:
            return UserRecord.get(email).to_user()
        except DoesNotExist:
            return None
        except PynamoDBException as exc:
            raise _store_error("get_user", exc) from exc

    async def create(self, user: User) -> User:
        return await asyncio.to_thread(self._create, user)

    async def get_by_email(self, email: str) -> User | None:
        return await asyncio.to_thread(self._get_by_email, email)
