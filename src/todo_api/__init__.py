"""
Todo API package.

A FastAPI service exposing CRUD operations over todo items stored in
PostgreSQL (or SQLite). Run it with ``python -m todo_api`` or the
``todo-api`` console script.
"""

__version__ = "0.1.0"
