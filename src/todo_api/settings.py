from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DB_DRIVER: 'postgres' (default) or 'sqlite'
    - DB_SERVER: database host. Default 'localhost'
    - DB_PORT: database port. Default 5432
    - DB_USER / DB_PASSWORD: database credentials. Default 'postgres' / 'postgres'
    - DB_NAME: database name, or the database file path for sqlite. Default 'todos'
    - DB_POOL_MIN_CONN / DB_POOL_MAX_CONN: connection pool bounds. Default 1 / 10
    - HOST / PORT: HTTP listen address. Default '0.0.0.0' / 8080
    - LOG_LEVEL: logging level name. Default 'INFO'
    """

    db_driver: str
    db_server: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_pool_min_conn: int
    db_pool_max_conn: int
    host: str
    port: int
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_int(name: str, default: int) -> int:
    try:
        return int(_get_env(name, str(default)).strip())
    except ValueError:
        return default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    driver = _get_env("DB_DRIVER", "postgres").strip().lower()
    if driver not in {"postgres", "sqlite"}:
        driver = "postgres"

    return Settings(
        db_driver=driver,
        db_server=_get_env("DB_SERVER", "localhost"),
        db_port=_get_int("DB_PORT", 5432),
        db_user=_get_env("DB_USER", "postgres"),
        db_password=_get_env("DB_PASSWORD", "postgres"),
        db_name=_get_env("DB_NAME", "todos"),
        db_pool_min_conn=_get_int("DB_POOL_MIN_CONN", 1),
        db_pool_max_conn=_get_int("DB_POOL_MAX_CONN", 10),
        host=_get_env("HOST", "0.0.0.0"),
        port=_get_int("PORT", 8080),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
