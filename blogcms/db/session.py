import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from blogcms.core.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str, timeout_seconds: int) -> dict:
    # check_same_thread is needed for SQLite, statement_timeout bounds queries on PostgreSQL
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={timeout_seconds * 1000}"}
    return {}


class Database:
    """Owns the engine for one process. open() at startup, close() at shutdown."""

    def __init__(self, url: str, timeout_seconds: int = 5, echo: bool = False):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.echo = echo
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "Database":
        if self._engine is not None:
            return self
        kwargs = {"echo": self.echo, "connect_args": _connect_args(self.url, self.timeout_seconds)}
        if self.url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_timeout"] = self.timeout_seconds
        self._engine = create_engine(self.url, **kwargs)
        logger.info("Database opened: %s", self._engine.url.render_as_string(hide_password=True))
        return self

    def create_db_and_tables(self) -> None:
        # Import models so they are registered with SQLModel metadata
        import blogcms.models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session


def database_from_settings() -> Database:
    return Database(settings.DATABASE_URL, timeout_seconds=settings.QUERY_TIMEOUT_SECONDS)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session(request: Request):
    with get_database(request).session() as session:
        yield session
