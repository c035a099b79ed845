import pytest

from vendhub.errors import NotFoundError, ValidationError
from vendhub.inventory import (
    InventoryAdjuster,
    location_stock_status,
    low_stock_items,
    stock_status,
    update_inventory_levels,
)


@pytest.fixture
def inventory(store, location, product):
    with store.transaction():
        return store.insert_inventory(
            location.id, product.id, current_stock=25, min_stock=5, max_stock=50
        )


@pytest.mark.parametrize(
    "current, minimum, expected",
    [(0, 5, "out"), (3, 5, "low"), (5, 5, "low"), (6, 5, "good"), (0, 0, "out")],
)
def test_stock_status(current, minimum, expected):
    assert stock_status(current, minimum) == expected


def test_location_stock_status_is_worst_of_rows():
    assert location_stock_status(["good", "low", "out"]) == "out"
    assert location_stock_status(["good", "low"]) == "low"
    assert location_stock_status(["good"]) == "good"


class TestInventoryAdjuster:
    def test_first_sale_seeds_stock(self, store, location, product):
        with store.transaction():
            new_stock = InventoryAdjuster(store).adjust(location.id, product.id, -1)

        assert new_stock == 24
        inventory = store.find_inventory(location.id, product.id)
        assert inventory.current_stock == 24
        assert inventory.min_stock == 5
        assert inventory.max_stock == 50

    def test_seed_ignores_delta(self, store, location, product):
        adjuster = InventoryAdjuster(store, seed_stock=10)
        assert adjuster.adjust(location.id, product.id, +3) == 13

    def test_existing_row_is_reused(self, store, inventory):
        adjuster = InventoryAdjuster(store)
        adjuster.adjust(inventory.location_id, inventory.product_id, -1)
        adjuster.adjust(inventory.location_id, inventory.product_id, -1)

        assert store.get_inventory(inventory.id).current_stock == 23
        assert len(store.list_inventory_details()) == 1

    def test_stock_never_goes_negative(self, store, location, product):
        with store.transaction():
            empty = store.insert_inventory(location.id, product.id, 0, 5, 50)

        adjuster = InventoryAdjuster(store)
        for _ in range(3):
            assert adjuster.adjust(location.id, product.id, -1) == 0
        assert store.get_inventory(empty.id).current_stock == 0

    def test_large_delta_clamps_at_zero(self, store, inventory):
        assert store.apply_stock_delta(inventory.id, -100) == 0


class TestUpdateInventoryLevels:
    def test_restock_stamps_last_restocked(self, store, inventory):
        updated = update_inventory_levels(store, inventory.id, {"currentStock": 40})

        assert updated.current_stock == 40
        assert updated.last_restocked is not None

    def test_lowering_stock_is_not_a_restock(self, store, inventory):
        updated = update_inventory_levels(store, inventory.id, {"current_stock": 10})

        assert updated.current_stock == 10
        assert updated.last_restocked is None

    def test_thresholds(self, store, inventory):
        updated = update_inventory_levels(
            store, inventory.id, {"min_stock": 8, "max_stock": 40}
        )
        assert (updated.min_stock, updated.max_stock) == (8, 40)
        assert updated.current_stock == 25

    def test_negative_value_rejected(self, store, inventory):
        with pytest.raises(ValidationError, match="Validation failed"):
            update_inventory_levels(store, inventory.id, {"current_stock": -1})

    def test_min_above_max_rejected(self, store, inventory):
        with pytest.raises(ValidationError):
            update_inventory_levels(store, inventory.id, {"min_stock": 10, "max_stock": 5})

    def test_min_above_existing_max_rejected(self, store, inventory):
        with pytest.raises(ValidationError, match="Minimum stock"):
            update_inventory_levels(store, inventory.id, {"min_stock": 60})

        assert store.get_inventory(inventory.id).min_stock == 5

    def test_unknown_inventory(self, store):
        with pytest.raises(NotFoundError):
            update_inventory_levels(store, "missing", {"current_stock": 5})


def test_low_stock_items(store, location, product):
    with store.transaction():
        other = store.insert_product("Pepsi", "012000001", "Soft Drinks")
        third = store.insert_product("Snickers", "040000001", "Candy")
        store.insert_inventory(location.id, product.id, 3, 5, 50)
        store.insert_inventory(location.id, other.id, 0, 5, 50)
        store.insert_inventory(location.id, third.id, 25, 5, 50)

    rows = low_stock_items(store)

    assert [(r["product_name"], r["stock_status"]) for r in rows] == [
        ("Pepsi", "out"),
        ("Celsius Arctic", "low"),
    ]
    assert low_stock_items(store, limit=1)[0]["product_name"] == "Pepsi"
