"""
Postgres database handle.

One connection pool per process, created at startup and closed on shutdown.
Every statement runs inside a transaction checked out from the pool; driver
errors are translated to DatabaseError here and nowhere else.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from .config import DB_POOL_MAX, DB_POOL_MIN, DatabaseSettings
from .errors import DatabaseError

logger = logging.getLogger(__name__)

Params = Sequence[Any]


class Transaction:
    """Statements bound to a single cursor inside an open transaction."""

    def __init__(self, cursor):
        self._cursor = cursor

    def fetch_one(self, sql: str, params: Params = ()) -> Optional[dict]:
        self._execute(sql, params)
        row = self._cursor.fetchone()
        return dict(row) if row is not None else None

    def fetch_all(self, sql: str, params: Params = ()) -> list[dict]:
        self._execute(sql, params)
        return [dict(row) for row in self._cursor.fetchall()]

    def execute(self, sql: str, params: Params = ()) -> int:
        """Run a statement and return the affected row count."""
        self._execute(sql, params)
        return self._cursor.rowcount

    def _execute(self, sql: str, params: Params) -> None:
        try:
            self._cursor.execute(sql, tuple(params) or None)
        except psycopg2.Error as e:
            raise DatabaseError(str(e).strip() or e.__class__.__name__) from e


class Database:
    """
    Process-wide Postgres handle backed by a threaded connection pool.

    Construct once, call open() at startup and close() on shutdown, and pass
    the instance to whatever needs database access.
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        minconn: int = DB_POOL_MIN,
        maxconn: int = DB_POOL_MAX,
    ):
        self.settings = settings
        self.minconn = minconn
        self.maxconn = maxconn
        self._pool: Optional[ThreadedConnectionPool] = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._pool.closed

    def open(self) -> None:
        """Create the connection pool."""
        if self.is_open:
            return
        logger.info(f"Connecting to {self.settings.describe()}")
        try:
            self._pool = ThreadedConnectionPool(
                self.minconn,
                self.maxconn,
                **self.settings.connect_kwargs(),
            )
        except psycopg2.Error as e:
            raise DatabaseError(f"Could not connect: {str(e).strip()}") from e

    def close(self) -> None:
        """Close every pooled connection."""
        if self.is_open:
            self._pool.closeall()
            logger.info("Database pool closed")
        self._pool = None

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Run statements in one transaction.

        Commits when the block exits normally and rolls back on any
        exception, which is re-raised.
        """
        if not self.is_open:
            # Pool creation failed at startup or was never attempted
            self.open()

        try:
            conn = self._pool.getconn()
        except psycopg2.Error as e:
            raise DatabaseError(str(e).strip()) from e

        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                yield Transaction(cursor)
            conn.commit()
        except psycopg2.Error as e:
            # Commit failures and cursor setup land here
            self._release(conn, rollback=True)
            raise DatabaseError(str(e).strip() or e.__class__.__name__) from e
        except BaseException:
            self._release(conn, rollback=True)
            raise
        else:
            self._release(conn)

    def _release(self, conn, rollback: bool = False) -> None:
        """Return a connection to the pool, discarding it if rollback fails."""
        if rollback:
            try:
                conn.rollback()
            except psycopg2.Error:
                logger.warning("Rollback failed; discarding connection")
                self._pool.putconn(conn, close=True)
                return
        self._pool.putconn(conn)

    def fetch_one(self, sql: str, params: Params = ()) -> Optional[dict]:
        with self.transaction() as tx:
            return tx.fetch_one(sql, params)

    def fetch_all(self, sql: str, params: Params = ()) -> list[dict]:
        with self.transaction() as tx:
            return tx.fetch_all(sql, params)

    def execute(self, sql: str, params: Params = ()) -> int:
        with self.transaction() as tx:
            return tx.execute(sql, params)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            row = self.fetch_one("SELECT 1 AS ok")
        except DatabaseError as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return row is not None
