from __future__ import annotations

import urllib.parse
from typing import Any

import pandas as pd
import sqlalchemy
from sqlalchemy.engine import Engine

from LINEDASH.server.configurations import DatabaseSettings
from LINEDASH.server.database.utils import normalize_postgres_engine
from LINEDASH.server.utils.logger import logger


# -----------------------------------------------------------------------------
def build_postgres_connect_args(settings: DatabaseSettings) -> dict[str, Any]:
    connect_args: dict[str, Any] = {"connect_timeout": settings.connect_timeout}
    if settings.ssl:
        connect_args["sslmode"] = "require"
        if settings.ssl_ca:
            connect_args["sslrootcert"] = settings.ssl_ca
    return connect_args


# -----------------------------------------------------------------------------
def build_postgres_url(settings: DatabaseSettings, database_name: str) -> str:
    port = settings.port or 5432
    engine_name = normalize_postgres_engine(settings.engine)
    safe_username = urllib.parse.quote_plus(settings.username or "")
    safe_password = urllib.parse.quote_plus(settings.password or "")
    return (
        f"{engine_name}://{safe_username}:{safe_password}"
        f"@{settings.host}:{port}/{database_name}"
    )


###############################################################################
class PostgresRepository:
    def __init__(self, settings: DatabaseSettings) -> None:
        if not settings.host:
            raise ValueError("Database host must be provided for external database.")
        if not settings.database_name:
            raise ValueError(
                "Database name must be provided for external database."
            )
        if not settings.username:
            raise ValueError(
                "Database username must be provided for external database."
            )

        self.db_path: str | None = None
        self.engine: Engine = sqlalchemy.create_engine(
            build_postgres_url(settings, settings.database_name),
            echo=False,
            future=True,
            connect_args=build_postgres_connect_args(settings),
            pool_pre_ping=True,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
        )
        self.insert_batch_size = settings.insert_batch_size
        logger.info(
            "Connection pool ready for %s:%s/%s (pool_size=%d, max_overflow=%d)",
            settings.host,
            settings.port,
            settings.database_name,
            settings.pool_size,
            settings.max_overflow,
        )

    # -------------------------------------------------------------------------
    def append_into_database(self, df: pd.DataFrame, table_name: str) -> None:
        with self.engine.begin() as conn:
            df.to_sql(
                table_name,
                conn,
                if_exists="append",
                index=False,
                chunksize=self.insert_batch_size,
            )

    # -------------------------------------------------------------------------
    def dispose(self) -> None:
        self.engine.dispose()
