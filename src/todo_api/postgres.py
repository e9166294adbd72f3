from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import BoundedSemaphore
from typing import Any, Dict, Generator, List, Optional

import psycopg2
from psycopg2 import pool as psycopg2_pool
from psycopg2.extras import RealDictCursor

from .models import TodoEntity
from .repositories import COLUMNS, TABLE, TodoStore, translate_errors
from .schemas import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)

_RETURNING = ", ".join(COLUMNS)
_ERRORS = (psycopg2.Error,)


class PostgresStore(TodoStore):
    """
    PostgreSQL store backed by a psycopg2 ThreadedConnectionPool.

    The pool is opened eagerly, so an unreachable server fails in the
    constructor. Each operation borrows one connection and runs in its own
    transaction; once max_conn connections are out, callers wait for one to
    be returned.
    """

    def __init__(self, dsn: str, min_conn: int = 1, max_conn: int = 10) -> None:
        min_conn = max(1, int(min_conn))
        max_conn = max(min_conn, int(max_conn))
        # getconn() raises PoolError instead of waiting once max_conn are out
        self._slots = BoundedSemaphore(max_conn)
        with translate_errors("connecting to database", _ERRORS):
            self._pool = psycopg2_pool.ThreadedConnectionPool(min_conn, max_conn, dsn)

    @contextmanager
    def _cursor(self) -> Generator[Any, None, None]:
        with self._slots:
            conn = self._pool.getconn()
            try:
                with conn:
                    with conn.cursor(cursor_factory=RealDictCursor) as cur:
                        yield cur
            finally:
                self._pool.putconn(conn)

    def _row_to_entity(self, row: Dict[str, Any]) -> TodoEntity:
        return {
            "id": int(row["id"]),
            "title": row["title"],
            "description": row["description"] or "",
            "completed": bool(row["completed"]),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    def ping(self) -> None:
        with translate_errors("verifying database connection", _ERRORS), self._cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()

    def ensure_schema(self) -> bool:
        with translate_errors("creating table", _ERRORS), self._cursor() as cur:
            cur.execute(
                """
                SELECT EXISTS (
                    SELECT 1 FROM information_schema.tables
                    WHERE table_schema = current_schema() AND table_name = %s
                ) AS present
                """,
                (TABLE,),
            )
            if cur.fetchone()["present"]:
                return False
            cur.execute(
                f"""
                CREATE TABLE {TABLE} (
                    id SERIAL PRIMARY KEY,
                    title VARCHAR(255) NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    completed BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
                """
            )
            return True

    def list(self) -> List[TodoEntity]:
        with translate_errors("fetching todos", _ERRORS), self._cursor() as cur:
            cur.execute(f"SELECT {_RETURNING} FROM {TABLE} ORDER BY created_at DESC, id DESC")
            return [self._row_to_entity(r) for r in cur.fetchall()]

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with translate_errors("fetching todo", _ERRORS), self._cursor() as cur:
            cur.execute(f"SELECT {_RETURNING} FROM {TABLE} WHERE id = %s", (todo_id,))
            row = cur.fetchone()
            return self._row_to_entity(row) if row else None

    def create(self, data: TodoCreate) -> TodoEntity:
        with translate_errors("creating todo", _ERRORS), self._cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO {TABLE} (title, description, completed)
                VALUES (%s, %s, %s)
                RETURNING id, created_at, updated_at
                """,
                (data.title, data.description, data.completed),
            )
            row = cur.fetchone()
            return {
                "id": int(row["id"]),
                "title": data.title,
                "description": data.description,
                "completed": data.completed,
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
            }

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        with translate_errors("updating todo", _ERRORS), self._cursor() as cur:
            cur.execute(
                f"""
                UPDATE {TABLE}
                SET title = %s, description = %s, completed = %s, updated_at = now()
                WHERE id = %s
                RETURNING {_RETURNING}
                """,
                (data.title, data.description, data.completed, todo_id),
            )
            row = cur.fetchone()
            return self._row_to_entity(row) if row else None

    def delete(self, todo_id: int) -> bool:
        with translate_errors("deleting todo", _ERRORS), self._cursor() as cur:
            cur.execute(f"DELETE FROM {TABLE} WHERE id = %s", (todo_id,))
            return cur.rowcount > 0

    def close(self) -> None:
        if not self._pool.closed:
            self._pool.closeall()
            logger.info("Database pool closed")
