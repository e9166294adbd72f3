from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, List, Optional

from .models import TodoEntity
from .repositories import COLUMNS, TABLE, TodoStore, translate_errors
from .schemas import TodoCreate, TodoUpdate

_SELECT = f"SELECT {', '.join(COLUMNS)} FROM {TABLE}"
_NOW = "(strftime('%Y-%m-%dT%H:%M:%f', 'now'))"
_ERRORS = (sqlite3.Error,)


class SQLiteStore(TodoStore):
    """
    Lightweight SQLite store implementing the TodoStore interface.
    A connection is opened per operation, so the store is safe to share
    between request threads.
    """

    def __init__(self, db_path: str) -> None:
        with translate_errors("opening database", (OSError,)):
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row["id"]),
            "title": str(row["title"]),
            "description": row["description"] or "",
            "completed": bool(row["completed"]),
            "created_at": datetime.fromisoformat(row["created_at"]),
            "updated_at": datetime.fromisoformat(row["updated_at"]),
        }

    def ping(self) -> None:
        with translate_errors("verifying database connection", _ERRORS), self._conn() as conn:
            conn.execute("SELECT 1").fetchone()

    def ensure_schema(self) -> bool:
        with translate_errors("creating table", _ERRORS), self._conn() as conn:
            found = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (TABLE,)
            ).fetchone()
            if found:
                return False
            conn.execute(
                f"""
                CREATE TABLE {TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL DEFAULT {_NOW},
                    updated_at TEXT NOT NULL DEFAULT {_NOW}
                )
                """
            )
            return True

    def list(self) -> List[TodoEntity]:
        with translate_errors("fetching todos", _ERRORS), self._conn() as conn:
            rows = conn.execute(f"{_SELECT} ORDER BY created_at DESC, id DESC").fetchall()
            return [self._row_to_entity(r) for r in rows]

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with translate_errors("fetching todo", _ERRORS), self._conn() as conn:
            row = conn.execute(f"{_SELECT} WHERE id = ?", (todo_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def create(self, data: TodoCreate) -> TodoEntity:
        with translate_errors("creating todo", _ERRORS), self._conn() as conn:
            cur = conn.execute(
                f"INSERT INTO {TABLE} (title, description, completed) VALUES (?, ?, ?)",
                (data.title, data.description, 1 if data.completed else 0),
            )
            row = conn.execute(
                f"SELECT id, created_at, updated_at FROM {TABLE} WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
            assert row is not None
            return {
                "id": int(row["id"]),
                "title": data.title,
                "description": data.description,
                "completed": data.completed,
                "created_at": datetime.fromisoformat(row["created_at"]),
                "updated_at": datetime.fromisoformat(row["updated_at"]),
            }

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        with translate_errors("updating todo", _ERRORS), self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {TABLE}
                SET title = ?, description = ?, completed = ?, updated_at = {_NOW}
                WHERE id = ?
                """,
                (data.title, data.description, 1 if data.completed else 0, todo_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(f"{_SELECT} WHERE id = ?", (todo_id,)).fetchone()
            assert row is not None
            return self._row_to_entity(row)

    def delete(self, todo_id: int) -> bool:
        with translate_errors("deleting todo", _ERRORS), self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {TABLE} WHERE id = ?", (todo_id,))
            return cur.rowcount > 0
