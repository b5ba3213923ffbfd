from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

from sqlalchemy.engine import Dialect
from sqlalchemy.exc import DBAPIError

if TYPE_CHECKING:
    from LINEDASH.server.services.identifiers import TableIdentifier

POSTGRES_UNDEFINED_COLUMN = "42703"
MYSQL_BAD_FIELD_ERROR = 1054


# -----------------------------------------------------------------------------
def normalize_postgres_engine(engine: str | None) -> str:
    if not engine:
        return "postgresql+psycopg"
    lowered = engine.lower()
    if lowered in {"postgres", "postgresql"}:
        return "postgresql+psycopg"
    return engine


# -----------------------------------------------------------------------------
def normalize_mysql_engine(engine: str | None) -> str:
    if not engine:
        return "mysql+pymysql"
    lowered = engine.lower()
    if lowered in {"mysql", "mariadb"}:
        return "mysql+pymysql"
    return engine


# -----------------------------------------------------------------------------
def is_postgres_engine(engine: str | None) -> bool:
    return bool(engine) and engine.lower().startswith("postgres")


# -----------------------------------------------------------------------------
def is_mysql_engine(engine: str | None) -> bool:
    return bool(engine) and engine.lower().startswith(("mysql", "mariadb"))


# -----------------------------------------------------------------------------
def quote_table_identifier(identifier: TableIdentifier, dialect: Dialect) -> str:
    """Render a sanitized identifier as a dialect-quoted, dot-joined name.

    This is the only place where a runtime-chosen table name is turned into
    SQL text; every query that targets a user-selected table goes through it.
    """
    preparer = dialect.identifier_preparer
    return ".".join(preparer.quote_identifier(part) for part in identifier.parts)


# -----------------------------------------------------------------------------
def is_unknown_column_error(error: BaseException) -> bool:
    original = error.orig if isinstance(error, DBAPIError) else error
    if original is None:
        return False

    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == POSTGRES_UNDEFINED_COLUMN:
        return True

    args = getattr(original, "args", ())
    if args and args[0] == MYSQL_BAD_FIELD_ERROR:
        return True

    if isinstance(original, sqlite3.OperationalError):
        return "no such column" in str(original).lower()

    return False
