import argparse
import logging
import sys
from pathlib import Path

from vendhub import settings, utils
from vendhub.errors import VendHubError
from vendhub.logger import setup_logger
from vendhub.store import create_store
from vendhub.uploads import ingest_upload

logger = logging.getLogger(__name__)

# Only the first few row errors are printed; the rest are on the import record.
MAX_ERRORS_SHOWN = 10


def run_sales_update(file_path: Path, data_source: str, test_mode: bool = False) -> int:
    logger.info("--- Starting Sales Import ---")

    # Bare filenames are looked up in the input folder
    if not file_path.exists() and (settings.INPUT_DIR / file_path).exists():
        file_path = settings.INPUT_DIR / file_path

    try:
        raw_text = utils.read_upload_file(file_path)
    except FileNotFoundError:
        logger.error(f"❌ File not found: {file_path}")
        return 1

    store = create_store(settings.DATABASE_URL, create_tables=True)
    try:
        result = ingest_upload(
            store,
            raw_text,
            data_source=data_source,
            filename=file_path.name,
            test_mode=test_mode,
        )
    except VendHubError as e:
        logger.error(f"❌ Upload rejected: {e}")
        return 1
    finally:
        store.close()

    logger.info("\n--- Import Result ---")
    logger.info(f"Import ID: {result.import_id}")
    logger.info(f"Total: {result.total}")
    logger.info(f"Processed: {result.processed}")
    logger.info(f"Failed: {result.failed}")

    for message in result.errors[:MAX_ERRORS_SHOWN]:
        logger.info(f"  - {message}")
    if len(result.errors) > MAX_ERRORS_SHOWN:
        logger.info(f"  ... and {len(result.errors) - MAX_ERRORS_SHOWN} more")

    logger.info("\n--- Process Finished Successfully ---")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import a vendor sales CSV export.")
    parser.add_argument("file", type=Path, help="Path to the CSV export")
    parser.add_argument(
        "--source",
        required=True,
        choices=settings.DATA_SOURCES,
        help="Which vendor produced the file",
    )
    parser.add_argument(
        "--test", action="store_true", help="Skip the webhook post"
    )
    args = parser.parse_args(argv)

    setup_logger()
    return run_sales_update(args.file, args.source, test_mode=args.test)


if __name__ == "__main__":
    sys.exit(main())
