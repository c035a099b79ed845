import pytest
from sqlalchemy import func, select

from vendhub import settings
from vendhub.errors import NotFoundError, PersistenceError
from vendhub.models import DataImport, Location


def count(store, model):
    return store.session.scalar(select(func.count()).select_from(model))


def test_transaction_commits(store):
    with store.transaction():
        store.insert_location("SW_02", "Location SW_02")

    store.session.rollback()
    assert count(store, Location) == 1


def test_transaction_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert_location("SW_02", "Location SW_02")
            raise RuntimeError("boom")

    assert count(store, Location) == 0


def test_unique_violation_is_persistence_error(store, product):
    with pytest.raises(PersistenceError) as exc_info:
        with store.transaction():
            store.insert_product("Celsius Copy", "889392014", "Energy Drinks")

    assert str(exc_info.value).startswith("Failed to create product")
    assert exc_info.value.code == "DATABASE_ERROR"
    # The session is usable again after the rollback
    assert store.find_product_by_upc("889392014").id == product.id


def test_product_search_escapes_wildcards(store):
    with store.transaction():
        juice = store.insert_product("100% Juice", "1", "Other")
        store.insert_product("1000 Island Chips", "2", "Snacks")

    assert [p.id for p in store.search_products_by_name("100%")] == [juice.id]


def test_apply_stock_delta_unknown_inventory(store):
    with pytest.raises(NotFoundError):
        store.apply_stock_delta("missing", -1)


def test_data_import_lifecycle(store):
    record = store.create_data_import("sales.csv", "vendor_a", total_rows=10)
    assert record.status == settings.IMPORT_PROCESSING
    assert store.get_data_import(record.id).processed_rows == 0

    store.finish_data_import(
        record.id,
        processed=9,
        failed=1,
        status=settings.IMPORT_COMPLETED_WITH_ERRORS,
        error_details="Row 5: Missing required fields: Price",
    )

    store.session.expire_all()
    finished = store.get_data_import(record.id)
    assert finished.status == "completed_with_errors"
    assert finished.processed_rows == 9
    assert finished.failed_rows == 1
    assert count(store, DataImport) == 1


def test_finish_unknown_import(store):
    with pytest.raises(NotFoundError):
        store.finish_data_import("missing", 0, 0, settings.IMPORT_FAILED)
