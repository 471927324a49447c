"""Bounded SQLite connection pool shared by every request."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

from logic.errors import PersistenceError
from stylist_app.logging_config import get_logger

logger = get_logger(__name__)


class SQLiteConnectionPool:
    """Fixed-size pool of SQLite connections backed by a SQLAlchemy engine.

    The pool is created once per process, opened at startup and closed at
    shutdown. At most ``size`` connections exist; a caller that finds every
    connection checked out waits up to ``timeout`` seconds. Closing the pool
    disposes idle connections immediately and closes checked-out ones when
    their owner returns them.
    """

    def __init__(self, database_path: str | Path, size: int = 10, timeout: float = 5.0) -> None:
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self.database_path = Path(database_path)
        self.size = size
        self.timeout = timeout
        self._engine: Optional[Engine] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        if self._engine is not None:
            return
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._engine = create_engine(
            f"sqlite:///{self.database_path}",
            poolclass=QueuePool,
            pool_size=self.size,
            max_overflow=0,
            pool_timeout=self.timeout,
            connect_args={"check_same_thread": False},
        )
        logger.info(
            "Connection pool opened",
            extra={"database_path": str(self.database_path), "pool_size": self.size},
        )

    def close(self) -> None:
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        engine.dispose()
        logger.info("Connection pool closed")

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Check out a connection inside a transaction; commit on success, roll back on error."""

        if self._engine is None:
            raise PersistenceError("Connection pool is not open")
        try:
            with self._engine.begin() as conn:
                yield conn
        except PoolTimeoutError as exc:
            raise PersistenceError(
                f"Timed out after {self.timeout}s waiting for a database connection"
            ) from exc


__all__ = ["SQLiteConnectionPool"]
