from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Engine, func, insert, select
from sqlalchemy.exc import SQLAlchemyError

from product_api.core.db import Base, create_sessionmaker
from product_api.core.logging import silent_logger
from product_api.models import SEED_PRODUCTS, ProductRecord


def init_db(engine: Engine, logger: Optional[logging.Logger] = None) -> int:
    """
    Create the products table and its indexes if absent, then seed sample rows.

    Seeding only happens on an empty table, so calling this repeatedly is safe.
    Returns the number of rows inserted by this call.
    """
    log = logger or silent_logger()
    try:
        log.info("Starting database initialization")
        Base.metadata.create_all(engine, checkfirst=True)
        log.info("Database tables and indexes created")

        with create_sessionmaker(engine).begin() as session:
            count = session.scalar(select(func.count()).select_from(ProductRecord))
            if count:
                log.info("Skipping data seeding - %d products already exist", count)
                return 0

            now = datetime.now(timezone.utc)
            session.execute(
                insert(ProductRecord),
                [{**row, "created_at": now} for row in SEED_PRODUCTS],
            )
            log.info("Seeded %d sample products", len(SEED_PRODUCTS))
            return len(SEED_PRODUCTS)
    except SQLAlchemyError:
        log.exception("Database initialization failed")
        raise
