"""Database configuration and session management."""
from contextlib import contextmanager
from typing import Generator, Optional
import logging
import threading

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from exceptions import PersistenceError
from models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Lazily connected handle on the relational store.

    The first successful `connect()` creates the engine and runs the
    idempotent schema setup; later calls reuse the same pool. A failed
    attempt leaves the handle unconnected so the next call retries.
    """

    def __init__(self, url: Optional[str], echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            # In-memory SQLite must share one connection across threads
            return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
        options = {"pool_pre_ping": True}
        if self.url.startswith("postgresql"):
            options["connect_args"] = {"connect_timeout": 5}
        return options

    def connect(self) -> Engine:
        """Create the engine and schema once; raise PersistenceError if the store is unreachable."""
        if self._engine is not None:
            return self._engine
        if not self.configured:
            raise PersistenceError("DATABASE_URL is not configured")

        with self._lock:
            if self._engine is None:
                engine = None
                try:
                    engine = create_engine(self.url, echo=self.echo, **self._engine_options())
                    Base.metadata.create_all(bind=engine)
                except SQLAlchemyError as e:
                    if engine is not None:
                        engine.dispose()
                    raise PersistenceError(f"Database initialization failed: {e}") from e
                self._session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
                self._engine = engine
                logger.info("[Database] Connected and initialized")
        return self._engine

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Database session scoped to one unit of work."""
        self.connect()
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                self._session_factory = None
