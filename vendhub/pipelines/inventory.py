import logging
import pandas as pd
from datetime import date
from pathlib import Path
from typing import Optional
from pydantic import ValidationError

from vendhub import data_handler, settings
from vendhub.inventory import STOCK_GOOD, STOCK_LOW, STOCK_OUT, location_stock_status
from vendhub.pipeline import DataPipeline
from vendhub.schemas import InventoryStatusItem
from vendhub.store import SqlStore

logger = logging.getLogger(__name__)


class InventoryReportPipeline(DataPipeline):
    """Snapshot of every machine's stock with out/low/good status per row and per location."""

    def __init__(
        self,
        store: SqlStore,
        output_dir: Optional[Path] = None,
        test_mode: bool = False,
    ):
        super().__init__("inventory report", test_mode=test_mode)
        self.store = store
        self.output_dir = output_dir
        self.system_date = date.today()
        self.output_path: Optional[Path] = None

    def extract(self) -> pd.DataFrame:
        logger.info("--- Loading Inventory ---")
        rows = self.store.list_inventory_details()
        logger.info(f"  > Inventory rows: {len(rows)}")
        return pd.DataFrame(rows)

    def transform(self, df: pd.DataFrame) -> list[InventoryStatusItem] | None:
        logger.info("--- Classifying Stock Levels ---")

        df["stock_status"] = STOCK_GOOD
        df.loc[df["current_stock"] <= df["min_stock"], "stock_status"] = STOCK_LOW
        df.loc[df["current_stock"] == 0, "stock_status"] = STOCK_OUT

        location_status = df.groupby("location_code")["stock_status"].agg(
            location_stock_status
        )
        df["location_status"] = df["location_code"].map(location_status)
        df["report_date"] = self.system_date

        # Optional columns come back as NaN from the join; pydantic wants None
        df = df.astype(object).where(df.notna(), None)

        self.status_summary = {
            code: status for code, status in location_status.sort_index().items()
        }

        try:
            logger.info("Validating data against schema...")
            validated_data = [
                InventoryStatusItem(**row) for row in df.to_dict("records")
            ]
            logger.info(f"✅ Data validation successful ({len(validated_data)} records).")
            return validated_data
        except ValidationError as e:
            logger.error("❌ Data validation failed!")
            logger.error(e)
            return None

    def load(self, validated_data: list[InventoryStatusItem]) -> list[InventoryStatusItem]:
        if validated_data:
            self.output_path = data_handler.save_outputs(
                validated_data,
                settings.INVENTORY_REPORT_FILENAME,
                output_dir=self.output_dir,
            )
        else:
            logger.warning("No data to save to disk.")

        super().load(validated_data)
        return validated_data
