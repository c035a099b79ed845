import pytest

from vendhub import settings
from vendhub.store import create_store

VENDOR_A_SAMPLE = """Location_ID,Product_Name,Scancode,Trans_Date,Price,Total_Amount
2.0_SW_02,Celsius Arctic,889392014,06/09/2025,3.50,3.82
SW_02,Muscle Milk,520000519,06/10/2025,4.25,4.64
NE_01,Coca Cola,049000028,06/11/2025,2.00,2.18
DT_05,Red Bull,902794001,06/09/2025,3.99,4.35
WS_03,Snickers,040000001,06/10/2025,1.50,1.64
2.0_SW_02,Doritos Nacho,028400001,06/11/2025,1.75,1.91
NE_01,Pepsi,012000001,06/09/2025,2.00,2.18
DT_05,Muscle Milk,520000519,06/10/2025,4.25,4.64
WS_03,Celsius Arctic,889392014,06/11/2025,3.50,3.82
SW_02,Lays Classic,028400002,06/09/2025,1.75,1.91"""

VENDOR_B_SAMPLE = """Site_Code,Item_Description,UPC,Sale_Date,Unit_Price,Final_Total
SW_02,Celsius Arctic Berry,889392014,2025-06-09,3.50,3.82
NE_01,Muscle Milk Vanilla,520000519,2025-06-10,4.25,4.64
DT_05,Pepsi,012000001,2025-06-11,2.00,2.18
WS_03,Red Bull,902794001,2025-06-09,3.99,4.35
2.0_SW_02,Snickers,040000001,2025-06-10,1.50,1.64
SW_02,Doritos Nacho,028400001,2025-06-11,1.75,1.91
NE_01,Coca Cola,049000028,2025-06-09,2.00,2.18
DT_05,Muscle Milk Vanilla,520000519,2025-06-10,4.25,4.64
WS_03,Celsius Arctic Berry,889392014,2025-06-11,3.50,3.82
2.0_SW_02,Lays Classic,028400002,2025-06-09,1.75,1.91"""


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keeps a developer's .env from sending webhooks or writing into the repo."""
    monkeypatch.setattr(settings, "WEBHOOK_URL", None)
    monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", False)
    monkeypatch.setattr(settings, "OUTPUT_DIR", tmp_path / "output")
    monkeypatch.setattr(settings, "LOG_DIR", tmp_path / "logs")


@pytest.fixture
def store():
    store = create_store("sqlite://", create_tables=True)
    yield store
    store.close()
    store.engine.dispose()


@pytest.fixture
def vendor_a_csv():
    return VENDOR_A_SAMPLE


@pytest.fixture
def vendor_b_csv():
    return VENDOR_B_SAMPLE


@pytest.fixture
def location(store):
    with store.transaction():
        return store.insert_location("SW_02", "Location SW_02")


@pytest.fixture
def product(store):
    with store.transaction():
        return store.insert_product("Celsius Arctic", "889392014", "Energy Drinks")
