from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

SUPPORTED_BACKENDS = ("postgresql", "sqlite")


class Base(DeclarativeBase):
    """Declarative base for the SQLAlchemy models."""


def backend_name(database_url: str | URL) -> str:
    """
    Backend part of a connection string ("postgresql+psycopg" -> "postgresql").
    """
    return make_url(database_url).get_backend_name()


def create_db_engine(database_url: str | URL) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # FastAPI runs sync routes in a threadpool; connections move between threads.
        return create_engine(url, connect_args={"check_same_thread": False})

    # pool_pre_ping drops connections the server already closed
    return create_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        class_=Session,
    )
