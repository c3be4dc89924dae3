import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taskai.config import DATABASE_URL

logger = logging.getLogger(__name__)

Base = declarative_base()

# Errors that mean the store itself is unreachable, as opposed to a bad query
STORE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError)


class Store:
    """Owns the engine and hands out sessions.

    The engine is created lazily on first use and reused for every request
    until ``close()``. Creating the schema is best-effort: if the database is
    down at startup the app still boots and retries on the next session.
    """

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        self._engine = None
        self._sessionmaker: Optional[sessionmaker] = None
        self._schema_ready = False

    @property
    def engine(self):
        if self._engine is None:
            self._engine = self._create_engine()
            self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        return self._engine

    def _create_engine(self):
        # Only apply sqlite-specific connect_args when using sqlite
        if self.url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            # In-memory databases live inside a single connection
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
            return create_engine(self.url, **kwargs)

        # Enable pool_pre_ping to avoid stale connections (useful for cloud DBs like Neon)
        return create_engine(self.url, pool_pre_ping=True)

    def open(self) -> "Store":
        self.engine
        self._ensure_schema()
        return self

    def _ensure_schema(self):
        # Import models so they are registered on Base.metadata
        from taskai import models  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine)
            self._schema_ready = True
        except STORE_UNAVAILABLE_ERRORS as exc:
            logger.warning("Database unavailable, schema creation deferred: %s", exc)

    def session(self) -> Session:
        if not self._schema_ready:
            self.open()
        return self._sessionmaker()

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)
        self._schema_ready = False

    def close(self):
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        self._schema_ready = False


def get_db(request: Request):
    db = request.app.state.store.session()
    try:
        yield db
    finally:
        db.close()
