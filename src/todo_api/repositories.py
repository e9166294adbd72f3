from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple, Type

from .models import TodoEntity
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings

logger = logging.getLogger(__name__)

TABLE = "todos"
COLUMNS = ("id", "title", "description", "completed", "created_at", "updated_at")


# PUBLIC_INTERFACE
class DatabaseError(Exception):
    """
    Raised by stores for any driver error. The message carries the driver's
    own text and is returned to clients as-is on 500 responses.
    """


@contextmanager
def translate_errors(action: str, errors: Tuple[Type[BaseException], ...]) -> Iterator[None]:
    """Re-raise driver errors of the given types as DatabaseError('Error <action>: ...')."""
    try:
        yield
    except errors as exc:
        raise DatabaseError(f"Error {action}: {exc}") from exc


# PUBLIC_INTERFACE
class TodoStore(ABC):
    """Abstract store contract for todo storage backends."""

    @abstractmethod
    def ping(self) -> None:
        """Run a trivial query. Raise DatabaseError if the database is unreachable."""

    @abstractmethod
    def ensure_schema(self) -> bool:
        """Create the todos table if the catalog says it is missing. Return True if it was created."""

    @abstractmethod
    def list(self) -> List[TodoEntity]:
        """Return all TodoEntities, newest first."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoEntity:
        """Insert and return a new TodoEntity with server-assigned id and timestamps."""

    @abstractmethod
    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        """Replace all mutable fields and refresh updated_at. Return updated entity or None if not found."""

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    def close(self) -> None:
        """Release any connections held by the store."""


# PUBLIC_INTERFACE
def build_dsn(settings: Settings) -> str:
    """
    Build the connection string for the configured driver.
    - postgres: libpq keyword/value DSN
    - sqlite: the database file path (DB_NAME)
    """
    if settings.db_driver == "sqlite":
        return settings.db_name

    from psycopg2.extensions import make_dsn

    return make_dsn(
        host=settings.db_server,
        port=settings.db_port,
        user=settings.db_user,
        password=settings.db_password,
        dbname=settings.db_name,
    )


# PUBLIC_INTERFACE
def open_store(settings: Settings) -> TodoStore:
    """
    Connect to the configured database, verify it answers a ping and make sure
    the todos table exists.

    Raises:
        DatabaseError if any of the three steps fails. Nothing is retried.
    """
    dsn = build_dsn(settings)
    store: TodoStore
    if settings.db_driver == "sqlite":
        from .db import SQLiteStore

        logger.info("Opening SQLite database at %s", dsn)
        store = SQLiteStore(dsn)
    else:
        from .postgres import PostgresStore

        logger.info(
            "Connecting to PostgreSQL at %s:%s/%s as %s",
            settings.db_server,
            settings.db_port,
            settings.db_name,
            settings.db_user,
        )
        store = PostgresStore(
            dsn,
            min_conn=settings.db_pool_min_conn,
            max_conn=settings.db_pool_max_conn,
        )

    try:
        store.ping()
        logger.info("Database connection verified")
        created = store.ensure_schema()
    except DatabaseError:
        store.close()
        raise
    logger.info("Table '%s' %s", TABLE, "created" if created else "verified")
    return store
