import logging
from datetime import date

import pandas as pd

from . import settings
from .errors import PersistenceError
from .models import Location, Product, SalesTransaction
from .schemas import CanonicalTransaction
from .store import SqlStore

logger = logging.getLogger(__name__)


class TransactionRecorder:
    def __init__(self, store: SqlStore):
        self.store = store

    def record(
        self,
        location: Location,
        product: Product,
        transaction: CanonicalTransaction,
        data_source: str,
    ) -> SalesTransaction:
        """Appends one sales record; the raw vendor row goes along for auditing."""
        # Dashed dates arrive as the vendor wrote them: "2025-6-9" or with a time part
        try:
            parsed = pd.to_datetime(transaction.sale_date, format="mixed")
        except (ValueError, TypeError):
            parsed = pd.NaT
        if pd.isna(parsed):
            raise PersistenceError(
                f"Failed to create sales transaction: invalid sale date "
                f"'{transaction.sale_date}'"
            )
        sale_date: date = parsed.date()

        sale = self.store.insert_sales_transaction(
            location_id=location.id,
            product_id=product.id,
            quantity_sold=settings.UNITS_PER_SALE,
            unit_price=transaction.unit_price,
            total_amount=transaction.total_amount,
            sale_date=sale_date,
            data_source=data_source,
            raw_data=dict(transaction.raw_row),
        )
        logger.debug(
            f"Recorded sale of {product.name} at {location.location_code} on {sale_date}"
        )
        return sale
