"""
MySQL connection provider and statement executor for tigen.

The inserter only depends on the `ConnectionProvider` / `SqlSession` protocols
defined here; `MySQLConnectionProvider` is the PyMySQL-backed implementation
used by the CLI. Tests substitute in-memory fakes.

Connection attempts can be retried with tenacity for transient network errors.
The default is a single attempt, so a run fails fast unless retries are asked for.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import pymysql
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tigen.config import Settings, get_settings
from tigen.domain.errors import DatabaseConnectionError, StatementError
from tigen.generators.schema import quote_identifier
from tigen.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class SqlSession(Protocol):
    """A single open connection that executes statements one at a time."""

    def execute(self, statement: str) -> None:
        """Run a statement; raise StatementError if the server rejects it."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class ConnectionProvider(Protocol):
    def open(self) -> SqlSession:
        """Return a ready session; raise DatabaseConnectionError on failure."""
        ...


@dataclass(frozen=True)
class ConnectionParams:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ConnectionParams":
        settings = settings or get_settings()
        return cls(
            host=settings.db_host,
            port=settings.db_port,
            user=settings.db_user,
            password=settings.db_password,
            database=settings.db_name,
            connect_timeout=settings.connect_timeout,
        )

    def describe(self) -> str:
        """Human-readable target without the password."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    def connect_kwargs(self, with_database: bool = True) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
            "charset": "utf8mb4",
            "autocommit": True,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class MySQLSession:
    """SqlSession over a PyMySQL connection in autocommit mode."""

    def __init__(self, conn: pymysql.connections.Connection) -> None:
        self._conn = conn

    def execute(self, statement: str) -> None:
        try:
            with self._conn.cursor() as cur:
                cur.execute(statement)
        except pymysql.MySQLError as exc:
            raise StatementError(str(exc), statement=statement) from exc

    def close(self) -> None:
        self._conn.close()


class MySQLConnectionProvider:
    """
    Open PyMySQL sessions against the configured schema.

    The schema is created with `create database if not exists` before the
    first session is returned.
    """

    def __init__(self, params: ConnectionParams, retries: int = 0) -> None:
        self.params = params
        self.retries = max(retries, 0)
        self._connect = retry(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(pymysql.OperationalError),
            reraise=True,
        )(pymysql.connect)
        self._database_ready = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MySQLConnectionProvider":
        settings = settings or get_settings()
        return cls(ConnectionParams.from_settings(settings), retries=settings.connect_retries)

    def ensure_database(self) -> None:
        statement = f"create database if not exists {quote_identifier(self.params.database)}"
        conn = self._connect(**self.params.connect_kwargs(with_database=False))
        try:
            with conn.cursor() as cur:
                cur.execute(statement)
        finally:
            conn.close()
        log.debug("Database ready", extra={"database": self.params.database})

    def open(self) -> MySQLSession:
        try:
            if not self._database_ready:
                self.ensure_database()
                self._database_ready = True
            conn = self._connect(**self.params.connect_kwargs())
        except pymysql.MySQLError as exc:
            raise DatabaseConnectionError(
                f"Cannot connect to {self.params.describe()}: {exc}"
            ) from exc
        return MySQLSession(conn)


__all__ = [
    "ConnectionParams",
    "ConnectionProvider",
    "MySQLConnectionProvider",
    "MySQLSession",
    "SqlSession",
]
