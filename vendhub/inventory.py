import logging
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from . import settings
from .errors import NotFoundError, ValidationError
from .models import Inventory, utcnow
from .schemas import InventoryUpdate
from .store import SqlStore

logger = logging.getLogger(__name__)

STOCK_OUT = "out"
STOCK_LOW = "low"
STOCK_GOOD = "good"


def stock_status(current_stock: int, min_stock: int) -> str:
    if current_stock == 0:
        return STOCK_OUT
    if current_stock <= min_stock:
        return STOCK_LOW
    return STOCK_GOOD


def location_stock_status(statuses) -> str:
    """The worst status among a location's inventory rows."""
    statuses = list(statuses)
    if STOCK_OUT in statuses:
        return STOCK_OUT
    if STOCK_LOW in statuses:
        return STOCK_LOW
    return STOCK_GOOD


class InventoryAdjuster:
    def __init__(
        self,
        store: SqlStore,
        seed_stock: int = settings.DEFAULT_SEED_STOCK,
        min_stock: int = settings.DEFAULT_MIN_STOCK,
        max_stock: int = settings.DEFAULT_MAX_STOCK,
    ):
        self.store = store
        self.seed_stock = seed_stock
        self.min_stock = min_stock
        self.max_stock = max_stock

    def ensure_exists(self, location_id: str, product_id: str) -> Inventory:
        inventory = self.store.find_inventory(location_id, product_id)
        if inventory is not None:
            return inventory

        # Seed stock does not depend on the delta: we assume the machine was
        # already holding a typical load before the first sale we saw.
        logger.debug(f"Seeding inventory for {location_id}/{product_id}")
        return self.store.insert_inventory(
            location_id=location_id,
            product_id=product_id,
            current_stock=self.seed_stock,
            min_stock=self.min_stock,
            max_stock=self.max_stock,
        )

    def adjust(self, location_id: str, product_id: str, delta: int) -> int:
        """Applies `delta` to the pair's stock, never going below zero. Returns the new stock."""
        inventory = self.ensure_exists(location_id, product_id)
        return self.store.apply_stock_delta(inventory.id, delta)


def low_stock_items(store: SqlStore, limit: int = 50) -> list[dict[str, Any]]:
    """Rows that are out or low, emptiest first."""
    rows = []
    for row in store.list_inventory_details():
        status = stock_status(row["current_stock"], row["min_stock"])
        if status != STOCK_GOOD:
            rows.append({**row, "stock_status": status})
    rows.sort(key=lambda r: r["current_stock"])
    return rows[:limit]


def update_inventory_levels(
    store: SqlStore,
    inventory_id: str,
    updates: Union[InventoryUpdate, dict[str, Any]],
) -> Inventory:
    """
    Manual edit of current/min/max stock from the location page.
    Raising the stock counts as a restock and stamps last_restocked.
    """
    if not isinstance(updates, InventoryUpdate):
        try:
            updates = InventoryUpdate(**updates)
        except PydanticValidationError as e:
            messages = [
                f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError(f"Validation failed: {', '.join(messages)}") from e

    values = updates.model_dump(exclude_none=True)

    with store.transaction():
        inventory = store.get_inventory(inventory_id)
        if inventory is None:
            raise NotFoundError("Inventory", inventory_id)

        min_stock = values.get("min_stock", inventory.min_stock)
        max_stock = values.get("max_stock", inventory.max_stock)
        if min_stock > max_stock:
            raise ValidationError("Minimum stock cannot be greater than maximum stock")

        new_stock = values.get("current_stock")
        if new_stock is not None and new_stock > inventory.current_stock:
            values["last_restocked"] = utcnow()

        inventory = store.update_inventory(inventory_id, values)

    logger.info(f"Updated inventory {inventory_id}: {values}")
    return inventory
