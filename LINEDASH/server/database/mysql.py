from __future__ import annotations

import urllib.parse
from typing import Any

import pandas as pd
import sqlalchemy
from sqlalchemy.engine import Engine

from LINEDASH.server.configurations import DatabaseSettings
from LINEDASH.server.database.utils import normalize_mysql_engine
from LINEDASH.server.utils.constants import DEFAULT_DB_PORT
from LINEDASH.server.utils.logger import logger


# -----------------------------------------------------------------------------
def build_mysql_connect_args(settings: DatabaseSettings) -> dict[str, Any]:
    # timestamps are exchanged in UTC regardless of the server default zone
    connect_args: dict[str, Any] = {
        "connect_timeout": settings.connect_timeout,
        "init_command": "SET time_zone = '+00:00'",
    }
    if settings.ssl:
        connect_args["ssl"] = {"ca": settings.ssl_ca} if settings.ssl_ca else {}
    return connect_args


# -----------------------------------------------------------------------------
def build_mysql_url(settings: DatabaseSettings, database_name: str | None) -> str:
    port = settings.port or DEFAULT_DB_PORT
    engine_name = normalize_mysql_engine(settings.engine)
    safe_username = urllib.parse.quote_plus(settings.username or "")
    safe_password = urllib.parse.quote_plus(settings.password or "")
    url = f"{engine_name}://{safe_username}:{safe_password}@{settings.host}:{port}"
    if database_name:
        url = f"{url}/{database_name}"
    return f"{url}?charset=utf8mb4"


###############################################################################
class MySQLRepository:
    def __init__(self, settings: DatabaseSettings) -> None:
        if not settings.host:
            raise ValueError("Database host must be provided for external database.")
        if not settings.username:
            raise ValueError(
                "Database username must be provided for external database."
            )

        self.db_path: str | None = None
        self.engine: Engine = sqlalchemy.create_engine(
            build_mysql_url(settings, settings.database_name),
            echo=False,
            future=True,
            connect_args=build_mysql_connect_args(settings),
            pool_pre_ping=True,
            pool_recycle=3600,
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
