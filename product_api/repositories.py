from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator, Optional, Protocol

from sqlalchemy import Engine, RowMapping, delete, insert, select, text, update
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from product_api.core.db import backend_name, create_db_engine, create_sessionmaker
from product_api.core.init_db import init_db
from product_api.core.logging import silent_logger
from product_api.errors import ProductValidationError
from product_api.models import ProductRecord
from product_api.schemas import Product

products = ProductRecord.__table__

_CENTS = Decimal("0.01")


class ProductStore(Protocol):
    """CRUD capabilities over the products table. Not-found is None/False, never an exception."""

    def list_all(self) -> list[Product]: ...

    def get_by_id(self, product_id: int) -> Optional[Product]: ...

    def create(self, name: str, price: Decimal, description: Optional[str]) -> Product: ...

    def update(
        self, product_id: int, name: str, price: Decimal, description: Optional[str]
    ) -> Optional[Product]: ...

    def delete(self, product_id: int) -> bool: ...

    def ping(self) -> None: ...

    def initialize(self) -> int: ...

    def dispose(self) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    # SQLite hands back naive datetimes; everything is written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_product(row: RowMapping) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        price=Decimal(row["price"]).quantize(_CENTS),
        description=row["description"],
        created_at=_as_utc(row["created_at"]),
        updated_at=_as_utc(row["updated_at"]),
    )


class SqlProductStore(ABC):
    """
    Shared plumbing for the SQL adapters.

    Each operation opens its own session on the pooled engine and releases it
    on exit. Storage errors are logged with context and re-raised unchanged,
    except constraint/data violations on writes, which become
    ProductValidationError.
    """

    backend = ""

    def __init__(self, engine: Engine, logger: Optional[logging.Logger] = None) -> None:
        self._engine = engine
        self._sessions = create_sessionmaker(engine)
        self._log = logger or silent_logger()

    @classmethod
    def from_url(cls, database_url: str, logger: Optional[logging.Logger] = None):
        return cls(create_db_engine(database_url), logger=logger)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _guard(self, message: str, *args) -> Iterator[None]:
        try:
            yield
        except (IntegrityError, DataError) as exc:
            self._log.warning("Rejected by database while " + message + ": %s", *args, exc.orig)
            reason = str(exc.orig)
            field = next((name for name in ("price", "name", "description") if name in reason), None)
            raise ProductValidationError(reason, field=field) from exc
        except SQLAlchemyError:
            self._log.exception("Error " + message, *args)
            raise

    def initialize(self) -> int:
        return init_db(self._engine, self._log)

    def ping(self) -> None:
        with self._guard("checking database connectivity"):
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self._engine.dispose()

    def list_all(self) -> list[Product]:
        stmt = select(products).order_by(products.c.created_at.desc(), products.c.id.desc())
        self._log.debug("Executing list_all query")
        with self._guard("retrieving all products"), self._sessions() as session:
            rows = session.execute(stmt).mappings().all()
        return [_to_product(row) for row in rows]

    def get_by_id(self, product_id: int) -> Optional[Product]:
        stmt = select(products).where(products.c.id == product_id)
        self._log.debug("Executing get_by_id query for ID: %s", product_id)
        with self._guard("retrieving product with ID: %s", product_id), self._sessions() as session:
            row = session.execute(stmt).mappings().one_or_none()
        return _to_product(row) if row is not None else None

    def delete(self, product_id: int) -> bool:
        stmt = delete(products).where(products.c.id == product_id)
        self._log.debug("Executing delete query for product ID: %s", product_id)
        with self._guard("deleting product with ID: %s", product_id), self._sessions.begin() as session:
            deleted = session.execute(stmt).rowcount > 0
        if deleted:
            self._log.debug("Product deleted with ID: %s", product_id)
        return deleted

    @abstractmethod
    def create(self, name: str, price: Decimal, description: Optional[str]) -> Product:
        """Insert a row and return it with its generated id and created_at."""

    @abstractmethod
    def update(
        self, product_id: int, name: str, price: Decimal, description: Optional[str]
    ) -> Optional[Product]:
        """Overwrite name, price and description; None when the id is unknown."""


class PostgresProductStore(SqlProductStore):
    """PostgreSQL adapter: writes return the affected row in the same round trip."""

    backend = "postgresql"

    def create(self, name: str, price: Decimal, description: Optional[str]) -> Product:
        stmt = (
            insert(products)
            .values(name=name, price=price, description=description, created_at=_utcnow(), updated_at=None)
            .returning(*products.c)
        )
        self._log.debug("Executing create query for product: %s", name)
        with self._guard("creating product: %s", name), self._sessions.begin() as session:
            row = session.execute(stmt).mappings().one()
        self._log.debug("Product created with ID: %s", row["id"])
        return _to_product(row)

    def update(
        self, product_id: int, name: str, price: Decimal, description: Optional[str]
    ) -> Optional[Product]:
        stmt = (
            update(products)
            .where(products.c.id == product_id)
            .values(name=name, price=price, description=description, updated_at=_utcnow())
            .returning(*products.c)
        )
        self._log.debug("Executing update query for product ID: %s", product_id)
        with self._guard("updating product with ID: %s", product_id), self._sessions.begin() as session:
            row = session.execute(stmt).mappings().one_or_none()
        if row is None:
            return None
        self._log.debug("Product updated with ID: %s", product_id)
        return _to_product(row)


class SqliteProductStore(SqlProductStore):
    """SQLite adapter: writes are followed by a select of the affected row."""

    backend = "sqlite"

    def create(self, name: str, price: Decimal, description: Optional[str]) -> Product:
        values = dict(name=name, price=price, description=description, created_at=_utcnow(), updated_at=None)
        self._log.debug("Executing create query for product: %s", name)
        with self._guard("creating product: %s", name), self._sessions.begin() as session:
            result = session.execute(insert(products).values(**values))
            new_id = result.inserted_primary_key[0]
            row = session.execute(select(products).where(products.c.id == new_id)).mappings().one()
        self._log.debug("Product created with ID: %s", new_id)
        return _to_product(row)

    def update(
        self, product_id: int, name: str, price: Decimal, description: Optional[str]
    ) -> Optional[Product]:
        stmt = (
            update(products)
            .where(products.c.id == product_id)
            .values(name=name, price=price, description=description, updated_at=_utcnow())
        )
        self._log.debug("Executing update query for product ID: %s", product_id)
        with self._guard("updating product with ID: %s", product_id), self._sessions.begin() as session:
            if session.execute(stmt).rowcount == 0:
                return None
            row = session.execute(select(products).where(products.c.id == product_id)).mappings().one()
        self._log.debug("Product updated with ID: %s", product_id)
        return _to_product(row)


_ADAPTERS: dict[str, type[SqlProductStore]] = {
    PostgresProductStore.backend: PostgresProductStore,
    SqliteProductStore.backend: SqliteProductStore,
}


def build_product_store(database_url: str, logger: Optional[logging.Logger] = None) -> SqlProductStore:
    """
    Pick the store adapter matching the connection string's backend.

    Raises ValueError for a backend without an adapter.
    """
    backend = backend_name(database_url)
    adapter = _ADAPTERS.get(backend)
    if adapter is None:
        supported = ", ".join(sorted(_ADAPTERS))
        raise ValueError(f"Unsupported database backend {backend!r} (supported: {supported})")
    return adapter.from_url(database_url, logger=logger)
