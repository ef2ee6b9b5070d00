from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from schoolhub.core.config import Settings


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the engine (connection pool) and the session factory.

    One instance is created when the application starts and disposed on
    shutdown; request handlers receive sessions through `get_db`.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url = settings.DATABASE_URL
        kwargs: dict = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
            )
        return cls(create_engine(url, **kwargs))

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
