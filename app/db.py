"""Database connection pool and raw SQL helpers.

The pool is created once by the application lifespan (see `main.py`) and
stored on `app.state.pool`; routes receive it through `get_pool`.

SQL parameter style: named placeholders (`:name`) via `sqlalchemy.text`.
"""
import logging
import sqlite3
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from fastapi import Request
from pymysql.constants import ER
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base

from settings import Settings

logger = logging.getLogger("student_backend.db")

Base = declarative_base()

# SQLite extended result codes (used by the in-memory test database)
_SQLITE_UNIQUE_CODES = {
    getattr(sqlite3, "SQLITE_CONSTRAINT_UNIQUE", 2067),
    getattr(sqlite3, "SQLITE_CONSTRAINT_PRIMARYKEY", 1555),
}


class ExecuteResult(NamedTuple):
    """Outcome of a write statement."""

    insert_id: Optional[int]
    affected_rows: int


class StudentPool:
    """Bounded pool of database connections shared by all requests."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run a read statement and return all rows as dicts."""
        with self.engine.connect() as conn:
            result = conn.execute(text(sql), dict(params or {}))
            return [dict(row._mapping) for row in result]

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> ExecuteResult:
        """Run a write statement in its own transaction."""
        with self.engine.begin() as conn:
            result = conn.execute(text(sql), dict(params or {}))
            return ExecuteResult(
                insert_id=result.lastrowid or None,
                affected_rows=result.rowcount,
            )

    def ping(self) -> bool:
        rows = self.query("SELECT 1 AS ok")
        return bool(rows) and rows[0]["ok"] == 1

    def close(self) -> None:
        self.engine.dispose()
        logger.info("database pool closed")


def create_pool(settings: Settings) -> StudentPool:
    """Build the MySQL pool from settings (no overflow, unbounded wait)."""
    engine = create_engine(
        settings.database_url,
        pool_size=settings.db_connection_limit,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        connect_args={
            "charset": "utf8mb4",
            "init_command": "SET time_zone = '+00:00'",
        },
    )
    logger.info(
        "database pool created",
        extra={
            "db_host": settings.db_host,
            "db_name": settings.db_name,
            "connection_limit": settings.db_connection_limit,
        },
    )
    return StudentPool(engine)


def is_duplicate_key(exc: BaseException) -> bool:
    """True when `exc` is a unique-constraint violation reported by the driver."""
    if not isinstance(exc, IntegrityError):
        return False
    orig = exc.orig
    if isinstance(orig, sqlite3.IntegrityError):
        return getattr(orig, "sqlite_errorcode", None) in _SQLITE_UNIQUE_CODES
    args = getattr(orig, "args", ())
    return bool(args) and args[0] == ER.DUP_ENTRY


def get_pool(request: Request) -> StudentPool:
    """FastAPI dependency: the pool opened by the application lifespan."""
    return request.app.state.pool
