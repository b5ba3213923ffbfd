from __future__ import annotations

import os
from typing import Any

import pandas as pd
import sqlalchemy
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from LINEDASH.server.configurations import DatabaseSettings
from LINEDASH.server.database.schema import Base
from LINEDASH.server.utils.constants import DATA_PATH, DATABASE_FILENAME
from LINEDASH.server.utils.logger import logger


# [SQLITE DATABASE]
###############################################################################
class SQLiteRepository:
    def __init__(self, settings: DatabaseSettings) -> None:
        self.db_path: str | None = settings.sqlite_path or os.path.join(
            DATA_PATH, DATABASE_FILENAME
        )
        engine_kwargs: dict[str, Any] = {
            "echo": False,
            "future": True,
            "connect_args": {"check_same_thread": False},
        }
        if self.db_path == ":memory:":
            self.db_path = None
            url = "sqlite://"
            # a single shared connection keeps the in-memory schema alive
            engine_kwargs["poolclass"] = StaticPool
        else:
            os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            url = f"sqlite:///{self.db_path}"
            engine_kwargs.update(
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_timeout=settings.pool_timeout,
            )
        is_new_database = self.db_path is None or not os.path.exists(self.db_path)
        self.engine: Engine = sqlalchemy.create_engine(url, **engine_kwargs)
        self.insert_batch_size = settings.insert_batch_size
        if is_new_database:
            Base.metadata.create_all(self.engine)
            logger.info("Created SQLite schema at %s", self.db_path or ":memory:")

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
