import logging
import pandas as pd

from vendhub import parsers, settings
from vendhub.errors import VendHubError
from vendhub.inventory import InventoryAdjuster
from vendhub.pipeline import DataPipeline
from vendhub.recorder import TransactionRecorder
from vendhub.resolvers import LocationResolver, ProductResolver
from vendhub.schemas import BatchResult, CanonicalTransaction
from vendhub.store import SqlStore

logger = logging.getLogger(__name__)


class SalesImportPipeline(DataPipeline):
    """
    Ingests one vendor sales export.

    Extract parses the upload, transform normalizes each row, load resolves the
    location and product, records the sale and takes one unit out of inventory.
    A bad row is counted and reported; it never stops the rest of the file.
    """

    def __init__(
        self,
        store: SqlStore,
        raw_text: str,
        data_source: str,
        test_mode: bool = False,
    ):
        super().__init__("sales import", test_mode=test_mode)
        # Fail fast on an unknown format, before touching the file
        parsers.get_vendor_format(data_source)

        self.store = store
        self.raw_text = raw_text
        self.data_source = data_source

        self.locations = LocationResolver(store)
        self.products = ProductResolver(store)
        self.recorder = TransactionRecorder(store)
        self.adjuster = InventoryAdjuster(store)

        self.row_count = 0
        self.result = BatchResult()
        self._row_errors: list[tuple[int, str]] = []

    def extract(self) -> pd.DataFrame:
        logger.info(f"--- Reading {self.data_source} export ---")
        df = parsers.parse_csv_text(self.raw_text)
        self.row_count = len(df)
        logger.info(f"  > Rows found: {self.row_count}")
        return df

    def transform(self, df: pd.DataFrame) -> list[tuple[int, CanonicalTransaction]]:
        logger.info("--- Normalizing Rows ---")
        normalized = []

        for row_number, row in enumerate(df.to_dict("records"), start=1):
            try:
                transaction = parsers.normalize_row(row, self.data_source)
            except VendHubError as e:
                self._fail(row_number, e)
                continue
            except Exception as e:
                logger.exception(f"Unexpected error normalizing row {row_number}")
                self._fail(row_number, f"Unexpected error: {e}")
                continue
            normalized.append((row_number, transaction))

        logger.info(f"  > {len(normalized)} of {self.row_count} rows normalized.")
        return normalized

    def process_transaction(self, transaction: CanonicalTransaction):
        """Location, then product, then the sale record, then the stock decrement."""
        location = self.locations.resolve(transaction.location_code, self.data_source)
        product = self.products.resolve(
            transaction.product_identifier, transaction.product_name
        )
        self.recorder.record(location, product, transaction, self.data_source)
        self.adjuster.adjust(location.id, product.id, -settings.UNITS_PER_SALE)

    def load(self, transactions: list[tuple[int, CanonicalTransaction]]) -> BatchResult:
        logger.info("--- Recording Sales ---")

        for row_number, transaction in transactions:
            try:
                # All four stages of a row commit together or not at all
                with self.store.transaction():
                    self.process_transaction(transaction)
            except VendHubError as e:
                self._fail(row_number, e)
                continue
            except Exception as e:
                logger.exception(f"Unexpected error processing row {row_number}")
                self._fail(row_number, f"Unexpected error: {e}")
                continue
            self.result.processed += 1

        self.result.errors = [
            message for _, message in sorted(self._row_errors, key=lambda e: e[0])
        ]
        self.status_summary = {
            "Data Source": self.data_source,
            "Rows": self.row_count,
            "Processed": self.result.processed,
            "Failed": self.result.failed,
        }
        super().load([])
        return self.result

    def _fail(self, row_number: int, error):
        message = f"Row {row_number}: {error}"
        self.result.failed += 1
        self._row_errors.append((row_number, message))
        logger.warning(f"  > ⚠️  {message}")


def process_batch(
    store: SqlStore, raw_text: str, data_source: str, test_mode: bool = False
) -> BatchResult:
    """Runs one upload through the sales pipeline and returns its counts."""
    return SalesImportPipeline(store, raw_text, data_source, test_mode=test_mode).run()
