from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from pynamodb.exceptions import DeleteError, DoesNotExist, PutError, QueryError, UpdateError

from stockfolio.config import Settings
from stockfolio.errors import NotFoundError, StoreError, ValidationError
from stockfolio.models import Holding, User
from stockfolio.stores import build_stores
from stockfolio.stores.dynamodb import DynamoHoldingsStore, DynamoUserStore, HoldingRecord, UserRecord


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "failed"}}, operation)


def _holding(**overrides) -> Holding:
    fields = {"id": "h1", "owner_id": "u1", "symbol": "AAPL", "quantity": 3.0, "purchase_price": 150.0}
    fields.update(overrides)
    return Holding(**fields)


@pytest.fixture
def restore_table_meta():
    saved = {
        model: (model.Meta.table_name, model.Meta.region, getattr(model.Meta, "host", None))
        for model in (HoldingRecord, UserRecord)
    }
    yield
    for model, (table_name, region, host) in saved.items():
        model.Meta.table_name = table_name
        model.Meta.region = region
        model.Meta.host = host
        model._connection = None


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_add_saves_record_for_owner(mock_record_cls):
    record = MagicMock()
    record.to_holding.return_value = _holding()
    mock_record_cls.return_value = record

    result = await DynamoHoldingsStore().add("u1", "AAPL", 3.0, 150.0)

    assert result == _holding()
    kwargs = mock_record_cls.call_args.kwargs
    assert kwargs["owner_id"] == "u1"
    assert kwargs["symbol"] == "AAPL"
    assert kwargs["holding_id"]
    record.save.assert_called_once()


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_list_for_owner_queries_owner_index(mock_record_cls):
    first, second = MagicMock(), MagicMock()
    first.to_holding.return_value = _holding(id="h1")
    second.to_holding.return_value = _holding(id="h2", symbol="MSFT")
    mock_record_cls.owner_index.query.return_value = iter([first, second])

    result = await DynamoHoldingsStore().list_for_owner("u1")

    mock_record_cls.owner_index.query.assert_called_once_with("u1")
    assert [h.id for h in result] == ["h1", "h2"]


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_list_for_owner_wraps_infrastructure_errors(mock_record_cls):
    mock_record_cls.owner_index.query.side_effect = QueryError("query failed")

    with pytest.raises(StoreError):
        await DynamoHoldingsStore().list_for_owner("u1")


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_get_returns_none_when_missing(mock_record_cls):
    mock_record_cls.get.side_effect = DoesNotExist()

    assert await DynamoHoldingsStore().get("missing") is None


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_update_missing_holding_raises_not_found(mock_record_cls):
    record = MagicMock()
    record.update.side_effect = UpdateError(
        "update failed", cause=_client_error("ConditionalCheckFailedException", "UpdateItem")
    )
    mock_record_cls.return_value = record

    with pytest.raises(NotFoundError):
        await DynamoHoldingsStore().update("missing", {"quantity": 2})


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_update_returns_refreshed_holding(mock_record_cls):
    record = MagicMock()
    record.to_holding.return_value = _holding(quantity=7.0)
    mock_record_cls.return_value = record

    result = await DynamoHoldingsStore().update("h1", {"quantity": 7.0, "unknown": "ignored"})

    assert result.quantity == 7.0
    actions = record.update.call_args.kwargs["actions"]
    # quantity plus the updated_at timestamp; unknown fields are dropped
    assert len(actions) == 2


@patch("stockfolio.stores.dynamodb.HoldingRecord")
@pytest.mark.asyncio
async def test_delete_wraps_other_errors_as_store_error(mock_record_cls):
    record = MagicMock()
    record.delete.side_effect = DeleteError(
        "delete failed", cause=_client_error("ProvisionedThroughputExceededException", "DeleteItem")
    )
    mock_record_cls.return_value = record

    with pytest.raises(StoreError):
        await DynamoHoldingsStore().delete("h1")


@patch("stockfolio.stores.dynamodb.UserRecord")
@pytest.mark.asyncio
async def test_create_user_rejects_existing_email(mock_record_cls):
    record = MagicMock()
    record.save.side_effect = PutError(
        "put failed", cause=_client_error("ConditionalCheckFailedException", "PutItem")
    )
    mock_record_cls.return_value = record

    with pytest.raises(ValidationError, match="Email already registered"):
        await DynamoUserStore().create(User(owner_id="o1", email="a@example.com", password_hash="h"))


@patch("stockfolio.stores.dynamodb.UserRecord")
@pytest.mark.asyncio
async def test_get_user_by_email(mock_record_cls):
    user = User(owner_id="o1", email="a@example.com", password_hash="h")
    mock_record_cls.get.return_value.to_user.return_value = user

    assert await DynamoUserStore().get_by_email("a@example.com") == user
    mock_record_cls.get.assert_called_once_with("a@example.com")


def test_holding_record_converts_to_domain_holding():
    record = HoldingRecord(
        holding_id="h1",
        owner_id="u1",
        symbol="AAPL",
        quantity=3,
        purchase_price=150,
    )
    assert record.to_holding() == _holding()


def test_build_stores_configures_dynamodb_tables(restore_table_meta):
    app_settings = Settings(
        store_backend="dynamodb",
        dynamodb_region="eu-west-1",
        dynamodb_endpoint="http://localhost:8000",
        dynamodb_holdings_table="test-holdings",
        dynamodb_users_table="test-users",
    )

    holdings_store, user_store = build_stores(app_settings)

    assert isinstance(holdings_store, DynamoHoldingsStore)
    assert isinstance(user_store, DynamoUserStore)
    assert HoldingRecord.Meta.table_name == "test-holdings"
    assert HoldingRecord.Meta.region == "eu-west-1"
    assert UserRecord.Meta.table_name == "test-users"
    assert UserRecord.Meta.host == "http://localhost:8000"
