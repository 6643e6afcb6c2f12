import os
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

# Stable environment before anything reads Settings.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "INFO")

from product_api.core.config import Settings  # noqa: E402
from product_api.core.db import Base  # noqa: E402
from product_api.main import create_app  # noqa: E402
from product_api.repositories import build_product_store  # noqa: E402
from product_api.schemas import Product  # noqa: E402

_POSTGRES_URL = os.getenv("TEST_POSTGRES_URL", "").strip()


@pytest.fixture()
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'products.db'}"


@pytest.fixture()
def settings(database_url) -> Settings:
    return Settings(ENVIRONMENT="test", DATABASE_URL=database_url)


@pytest.fixture(params=["sqlite", pytest.param("postgresql", marks=pytest.mark.postgres)])
def empty_store(request, database_url):
    """
    Store over an existing but empty products table, once per adapter.

    The PostgreSQL run is skipped unless TEST_POSTGRES_URL points at a
    disposable database.
    """
    if request.param == "postgresql":
        if not _POSTGRES_URL:
            pytest.skip("TEST_POSTGRES_URL not set; skipping PostgreSQL store tests")
        url = _POSTGRES_URL
    else:
        url = database_url

    store = build_product_store(url)
    Base.metadata.drop_all(store.engine)
    Base.metadata.create_all(store.engine)
    yield store
    store.dispose()


@pytest.fixture()
def seeded_store(database_url):
    store = build_product_store(database_url)
    store.initialize()
    yield store
    store.dispose()


@pytest.fixture()
def client(settings):
    # Context manager runs the lifespan: store built from DATABASE_URL, tables created, rows seeded.
    with TestClient(create_app(settings=settings)) as c:
        yield c


class BrokenStore:
    """Store whose database is unreachable."""

    def __init__(self) -> None:
        self.error = OperationalError("SELECT 1", {}, Exception("connection refused"))

    def initialize(self) -> int:
        return 0

    def dispose(self) -> None:
        pass

    def ping(self) -> None:
        raise self.error

    def list_all(self) -> list[Product]:
        raise self.error

    def get_by_id(self, product_id: int) -> Optional[Product]:
        raise self.error

    def create(self, name: str, price: Decimal, description: Optional[str]) -> Product:
        raise self.error

    def update(self, product_id: int, name: str, price: Decimal, description: Optional[str]) -> Optional[Product]:
        raise self.error

    def delete(self, product_id: int) -> bool:
        raise self.error


@pytest.fixture()
def broken_store() -> BrokenStore:
    return BrokenStore()
