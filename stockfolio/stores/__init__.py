from stockfolio.config import Settings
from stockfolio.schemas import STORE_BACKEND_DYNAMODB
from stockfolio.stores.base import HoldingsStore, UserStore
from stockfolio.stores.memory import InMemoryHoldingsStore, InMemoryUserStore


def build_stores(settings: Settings, create_tables: bool = False) -> tuple[HoldingsStore, UserStore]:
    if settings.store_backend != STORE_BACKEND_DYNAMODB:
        return InMemoryHoldingsStore(), InMemoryUserStore()

    from stockfolio.stores.dynamodb import (
        DynamoHoldingsStore,
        DynamoUserStore,
        HoldingRecord,
        UserRecord,
        configure_table,
    )

    configure_table(HoldingRecord, settings.dynamodb_holdings_table, settings.dynamodb_region, settings.dynamodb_endpoint)
    configure_table(UserRecord, settings.dynamodb_users_table, settings.dynamodb_region, settings.dynamodb_endpoint)
    holdings_store, user_store = DynamoHoldingsStore(), DynamoUserStore()
    if create_tables:
        holdings_store.ensure_table()
        user_store.ensure_table()
    return holdings_store, user_store
