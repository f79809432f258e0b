from typing import Any

from stockfolio.errors import NotFoundError
from stockfolio.models import Holding
from stockfolio.stores.base import HoldingsStore
from stockfolio.telemetry import get_logger


logger = get_logger(__name__)


async def _get_owned(store: HoldingsStore, owner_id: str, holding_id: str) -> Holding:
    holding = await store.get(holding_id)
    # Someone else's holding is reported exactly like a missing one.
    if holding is None or holding.owner_id != owner_id:
        raise NotFoundError("Holding not found")
    return holding


async def add_holding(
    store: HoldingsStore,
    owner_id: str,
    symbol: str,
    quantity: float,
    purchase_price: float,
) -> Holding:
    holding = await store.add(owner_id, symbol, quantity, purchase_price)
    logger.info(
        "holding_added",
        extra={"owner_id": owner_id, "holding_id": holding.id, "symbol": holding.symbol},
    )
    return holding


async def update_holding(
    store: HoldingsStore,
    owner_id: str,
    holding_id: str,
    changes: dict[str, Any],
) -> Holding:
    current = await _get_owned(store, owner_id, holding_id)
    if not changes:
        return current
    updated = await store.update(holding_id, changes)
    logger.info(
        "holding_updated",
        extra={"owner_id": owner_id, "holding_id": holding_id, "fields": sorted(changes)},
    )
    return updated


async def delete_holding(store: HoldingsStore, owner_id: str, holding_id: str) -> None:
    await _get_owned(store, owner_id, holding_id)
    await store.delete(holding_id)
    logger.info("holding_deleted", extra={"owner_id": owner_id, "holding_id": holding_id})
