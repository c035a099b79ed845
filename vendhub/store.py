"""
Store handle over the relational database.

One `SqlStore` is created per process (or per upload) with `create_store` and
passed explicitly to every component that needs persistence. All SQLAlchemy
errors leave this module as `PersistenceError`.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import case, create_engine, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from . import settings
from .errors import NotFoundError, PersistenceError
from .models import (
    Base,
    DataImport,
    Inventory,
    Location,
    Product,
    SalesTransaction,
    utcnow,
)

logger = logging.getLogger(__name__)


def create_store(database_url: str | None = None, create_tables: bool = False) -> "SqlStore":
    """Builds the engine for `database_url` (defaults to settings.DATABASE_URL)."""
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        engine_kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        # In-memory databases vanish with their connection, so share one.
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs = {
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": settings.POOL_SIZE,
            "max_overflow": settings.MAX_OVERFLOW,
            "pool_timeout": 30,
        }

    engine = create_engine(url, **engine_kwargs)
    if create_tables:
        Base.metadata.create_all(engine)
    return SqlStore(engine)


class SqlStore:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )
        self.session: Session = self._session_factory()

    def close(self):
        self.session.close()

    def __enter__(self) -> "SqlStore":
        return self

    def __exit__(self, *exc_info):
        self.close()

    # --- Transactions ---

    @contextmanager
    def transaction(self) -> Iterator["SqlStore"]:
        """Commits everything done inside the block, or rolls all of it back."""
        try:
            yield self
            with self._guard("Failed to commit"):
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    @contextmanager
    def _guard(self, message: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            detail = getattr(exc, "orig", None) or exc
            logger.debug(f"Store error: {message}: {detail}")
            raise PersistenceError(f"{message}: {detail}") from exc

    def _insert(self, instance, message: str):
        with self._guard(message):
            self.session.add(instance)
            self.session.flush()
        return instance

    # --- Locations ---

    def find_locations_by_codes(self, codes: list[str]) -> list[Location]:
        with self._guard("Failed to find location"):
            stmt = select(Location).where(Location.location_code.in_(codes))
            return list(self.session.scalars(stmt))

    def insert_location(
        self, location_code: str, name: str, address: Optional[str] = None
    ) -> Location:
        location = Location(location_code=location_code, name=name, address=address)
        return self._insert(location, "Failed to create location")

    def list_locations(self) -> list[Location]:
        with self._guard("Failed to fetch locations"):
            return list(self.session.scalars(select(Location).order_by(Location.name)))

    # --- Products ---

    def find_product_by_upc(self, upc: str) -> Optional[Product]:
        with self._guard("Failed to find product"):
            return self.session.scalars(select(Product).where(Product.upc == upc)).first()

    def search_products_by_name(self, fragment: str) -> list[Product]:
        """Case-insensitive substring search, oldest products first."""
        with self._guard("Failed to search products"):
            stmt = (
                select(Product)
                .where(Product.name.icontains(fragment, autoescape=True))
                .order_by(Product.created_at, Product.id)
            )
            return list(self.session.scalars(stmt))

    def insert_product(self, name: str, upc: Optional[str], category: str) -> Product:
        product = Product(name=name, upc=upc, category=category)
        return self._insert(product, "Failed to create product")

    # --- Sales ---

    def insert_sales_transaction(self, **values) -> SalesTransaction:
        return self._insert(
            SalesTransaction(**values), "Failed to create sales transaction"
        )

    # --- Inventory ---

    def find_inventory(self, location_id: str, product_id: str) -> Optional[Inventory]:
        with self._guard("Failed to find inventory"):
            stmt = select(Inventory).where(
                Inventory.location_id == location_id,
                Inventory.product_id == product_id,
            )
            return self.session.scalars(stmt).first()

    def get_inventory(self, inventory_id: str) -> Optional[Inventory]:
        with self._guard("Failed to fetch inventory"):
            return self.session.get(Inventory, inventory_id)

    def insert_inventory(
        self,
        location_id: str,
        product_id: str,
        current_stock: int,
        min_stock: int,
        max_stock: int,
    ) -> Inventory:
        inventory = Inventory(
            location_id=location_id,
            product_id=product_id,
            current_stock=current_stock,
            min_stock=min_stock,
            max_stock=max_stock,
        )
        return self._insert(inventory, "Failed to create inventory")

    def apply_stock_delta(self, inventory_id: str, delta: int) -> int:
        """Adds `delta` to current_stock in one UPDATE, clamping at zero."""
        new_stock = Inventory.current_stock + delta
        stmt = (
            update(Inventory)
            .where(Inventory.id == inventory_id)
            .values(
                current_stock=case((new_stock < 0, 0), else_=new_stock),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        # Re-read so an Inventory already loaded in this session sees the new stock
        refresh = (
            select(Inventory)
            .where(Inventory.id == inventory_id)
            .execution_options(populate_existing=True)
        )
        with self._guard("Failed to update inventory"):
            self.session.execute(stmt)
            inventory = self.session.scalars(refresh).first()
        if inventory is None:
            raise NotFoundError("Inventory", inventory_id)
        return inventory.current_stock

    def update_inventory(self, inventory_id: str, values: dict[str, Any]) -> Inventory:
        inventory = self.get_inventory(inventory_id)
        if inventory is None:
            raise NotFoundError("Inventory", inventory_id)
        with self._guard("Failed to update inventory"):
            for key, value in values.items():
                setattr(inventory, key, value)
            self.session.flush()
        return inventory

    def list_inventory_details(self) -> list[dict[str, Any]]:
        """Every inventory row joined with its location and product."""
        stmt = (
            select(
                Inventory.id.label("inventory_id"),
                Location.location_code,
                Location.name.label("location_name"),
                Product.name.label("product_name"),
                Product.upc,
                Product.category,
                Inventory.current_stock,
                Inventory.min_stock,
                Inventory.max_stock,
            )
            .join(Location, Inventory.location_id == Location.id)
            .join(Product, Inventory.product_id == Product.id)
            .order_by(Location.location_code, Product.name)
        )
        with self._guard("Failed to fetch inventory"):
            return [dict(row._mapping) for row in self.session.execute(stmt)]

    # --- Imports ---

    def create_data_import(
        self,
        filename: str,
        data_source: str,
        total_rows: int,
        uploaded_by: Optional[str] = None,
    ) -> DataImport:
        record = DataImport(
            filename=filename,
            data_source=data_source,
            total_rows=total_rows,
            processed_rows=0,
            failed_rows=0,
            status=settings.IMPORT_PROCESSING,
            uploaded_by=uploaded_by,
        )
        with self.transaction():
            self._insert(record, "Failed to create import record")
        return record

    def finish_data_import(
        self,
        import_id: str,
        processed: int,
        failed: int,
        status: str,
        error_details: Optional[str] = None,
    ) -> DataImport:
        with self.transaction():
            with self._guard("Failed to update import record"):
                record = self.session.get(DataImport, import_id)
            if record is None:
                raise NotFoundError("DataImport", import_id)
            record.processed_rows = processed
            record.failed_rows = failed
            record.status = status
            record.error_details = error_details
        return record

    def get_data_import(self, import_id: str) -> Optional[DataImport]:
        with self._guard("Failed to fetch import record"):
            return self.session.get(DataImport, import_id)
