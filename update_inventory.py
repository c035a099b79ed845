import argparse
import logging
import sys

from vendhub import settings
from vendhub.inventory import low_stock_items
from vendhub.logger import setup_logger
from vendhub.pipelines.inventory import InventoryReportPipeline
from vendhub.store import create_store

logger = logging.getLogger(__name__)


def run_inventory_report(test_mode: bool = False) -> int:
    """Exports the stock status report and lists what needs restocking."""
    store = create_store(settings.DATABASE_URL, create_tables=True)
    try:
        pipeline = InventoryReportPipeline(store, test_mode=test_mode)
        report = pipeline.run()
        if report is None:
            return 1

        low = low_stock_items(store)
        if low:
            logger.info(f"\n--- Needs Restocking ({len(low)}) ---")
            for row in low:
                logger.info(
                    f"{row['location_code']}: {row['product_name']} "
                    f"{row['current_stock']}/{row['min_stock']} ({row['stock_status']})"
                )
    finally:
        store.close()

    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export the inventory status report.")
    parser.add_argument("--test", action="store_true", help="Skip the webhook post")
    args = parser.parse_args(argv)

    setup_logger()
    return run_inventory_report(test_mode=args.test)


if __name__ == "__main__":
    sys.exit(main())
