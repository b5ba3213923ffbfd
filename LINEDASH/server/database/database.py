from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import pandas as pd
from sqlalchemy.engine import Engine

from LINEDASH.server.configurations import DatabaseSettings
from LINEDASH.server.database.mysql import MySQLRepository
from LINEDASH.server.database.postgres import PostgresRepository
from LINEDASH.server.database.sqlite import SQLiteRepository
from LINEDASH.server.database.utils import is_mysql_engine, is_postgres_engine
from LINEDASH.server.utils.logger import logger


###############################################################################
class DatabaseBackend(Protocol):
    db_path: str | None
    engine: Engine

    # -------------------------------------------------------------------------
    def append_into_database(self, df: pd.DataFrame, table_name: str) -> None: ...

    # -------------------------------------------------------------------------
    def dispose(self) -> None: ...


BackendFactory = Callable[[DatabaseSettings], DatabaseBackend]

# -----------------------------------------------------------------------------
def build_sqlite_backend(settings: DatabaseSettings) -> DatabaseBackend:
    return SQLiteRepository(settings)

# -----------------------------------------------------------------------------
def build_postgres_backend(settings: DatabaseSettings) -> DatabaseBackend:
    return PostgresRepository(settings)

# -----------------------------------------------------------------------------
def build_mysql_backend(settings: DatabaseSettings) -> DatabaseBackend:
    return MySQLRepository(settings)


BACKEND_FACTORIES: dict[str, BackendFactory] = {
    "sqlite": build_sqlite_backend,
    "postgres": build_postgres_backend,
    "mysql": build_mysql_backend,
}


# -----------------------------------------------------------------------------
def resolve_backend_name(settings: DatabaseSettings) -> str:
    if settings.embedded_database:
        return "sqlite"
    engine = settings.engine or "mysql"
    if is_postgres_engine(engine):
        return "postgres"
    if is_mysql_engine(engine):
        return "mysql"
    return engine.lower()


# [DATABASE]
###############################################################################
class LINEDASHDatabase:
    """Process-wide handle on the connection pool.

    Built once by the application lifespan and handed to request handlers
    through dependency injection; ``close`` releases every pooled connection.
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self.settings = settings
        self.backend = self._build_backend()

    # -------------------------------------------------------------------------
    def _build_backend(self) -> DatabaseBackend:
        backend_name = resolve_backend_name(self.settings)
        logger.info("Initializing %s database backend", backend_name)
        if backend_name not in BACKEND_FACTORIES:
            raise ValueError(f"Unsupported database engine: {self.settings.engine}")
        factory = BACKEND_FACTORIES[backend_name]
        return factory(self.settings)

    # -------------------------------------------------------------------------
    @property
    def engine(self) -> Engine:
        return self.backend.engine

    # -------------------------------------------------------------------------
    @property
    def db_path(self) -> str | None:
        return getattr(self.backend, "db_path", None)

    # -------------------------------------------------------------------------
    def append_into_database(self, df: pd.DataFrame, table_name: str) -> None:
        self.backend.append_into_database(df, table_name)

    # -------------------------------------------------------------------------
    def close(self) -> None:
        logger.info("Disposing database connection pool")
        self.backend.dispose()

    # -------------------------------------------------------------------------
    def __enter__(self) -> LINEDASHDatabase:
        return self

    # -------------------------------------------------------------------------
    def __exit__(self, *exc_info: Any) -> None:
        self.close()
