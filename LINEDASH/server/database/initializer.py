from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pandas as pd
import sqlalchemy
from sqlalchemy.exc import SQLAlchemyError

from LINEDASH.server.configurations import DatabaseSettings
from LINEDASH.server.database.database import LINEDASHDatabase, resolve_backend_name
from LINEDASH.server.database.mysql import build_mysql_connect_args, build_mysql_url
from LINEDASH.server.database.postgres import (
    build_postgres_connect_args,
    build_postgres_url,
)
from LINEDASH.server.database.schema import Base
from LINEDASH.server.utils.constants import PRIMARY_TABLE
from LINEDASH.server.utils.logger import logger

DEMO_LINES = ("LINE_A", "LINE_B")
DEMO_STEPS = ("S100", "S200", "S300", "S400", "S500")


# -----------------------------------------------------------------------------
def ensure_postgres_database(settings: DatabaseSettings) -> str:
    if not settings.host:
        raise ValueError("Database host is required for PostgreSQL initialization.")
    if not settings.username:
        raise ValueError("Database username is required for PostgreSQL initialization.")
    if not settings.database_name:
        raise ValueError("Database name is required for PostgreSQL initialization.")

    target_database = settings.database_name
    safe_database = target_database.replace('"', '""')
    admin_engine = sqlalchemy.create_engine(
        build_postgres_url(settings, "postgres"),
        echo=False,
        future=True,
        connect_args=build_postgres_connect_args(settings),
        isolation_level="AUTOCOMMIT",
        pool_pre_ping=True,
    )

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                sqlalchemy.text("SELECT 1 FROM pg_database WHERE datname=:name"),
                {"name": target_database},
            ).scalar()
            if exists:
                logger.info("PostgreSQL database %s already exists", target_database)
            else:
                conn.execute(sqlalchemy.text(f'CREATE DATABASE "{safe_database}"'))
                logger.info("Created PostgreSQL database %s", target_database)
    finally:
        admin_engine.dispose()

    return target_database


# -----------------------------------------------------------------------------
def ensure_mysql_database(settings: DatabaseSettings) -> str:
    if not settings.host:
        raise ValueError("Database host is required for MySQL initialization.")
    if not settings.database_name:
        raise ValueError("Database name is required for MySQL initialization.")

    target_database = settings.database_name
    safe_database = target_database.replace("`", "``")
    admin_engine = sqlalchemy.create_engine(
        build_mysql_url(settings, None),
        echo=False,
        future=True,
        connect_args=build_mysql_connect_args(settings),
        isolation_level="AUTOCOMMIT",
        pool_pre_ping=True,
    )

    try:
        with admin_engine.connect() as conn:
            conn.execute(
                sqlalchemy.text(
                    f"CREATE DATABASE IF NOT EXISTS `{safe_database}` "
                    "CHARACTER SET utf8mb4"
                )
            )
            logger.info("Ensured MySQL database %s exists", target_database)
    finally:
        admin_engine.dispose()

    return target_database


# -----------------------------------------------------------------------------
def build_demo_records(now: datetime | None = None) -> pd.DataFrame:
    reference = now or datetime.now(timezone.utc).replace(tzinfo=None)
    records = []
    for line_index, line_id in enumerate(DEMO_LINES):
        for position in range(12):
            step_index = position % len(DEMO_STEPS)
            status = "Completed" if position % 3 == 0 else "Running"
            created_at = reference - timedelta(days=position, hours=line_index)
            records.append(
                {
                    "line_id": line_id,
                    "lot_id": f"{line_id}-LOT{position // 4:02d}",
                    "status": status,
                    "main_step": DEMO_STEPS[0],
                    "metro_steps": ",".join(DEMO_STEPS[1:4]),
                    "metro_current_step": DEMO_STEPS[step_index],
                    "metro_end_step": DEMO_STEPS[-1],
                    "custom_end_step": None,
                    "inform_step": None,
                    "comment": "",
                    "needtosend": position % 2,
                    "send_jira": 0,
                    "created_at": created_at,
                    "updated_at": created_at,
                }
            )
    return pd.DataFrame.from_records(records)


# -----------------------------------------------------------------------------
def seed_demo_records(database: LINEDASHDatabase) -> int:
    dataset = build_demo_records()
    database.append_into_database(dataset, PRIMARY_TABLE)
    logger.info("Seeded %d demo rows into %s", len(dataset), PRIMARY_TABLE)
    return len(dataset)


# -----------------------------------------------------------------------------
def run_database_initialization(settings: DatabaseSettings, seed: bool = False) -> None:
    backend_name = resolve_backend_name(settings)
    if backend_name == "postgres":
        ensure_postgres_database(settings)
    elif backend_name == "mysql":
        ensure_mysql_database(settings)
    elif backend_name != "sqlite":
        raise ValueError(f"Unsupported database engine: {settings.engine}")

    database = LINEDASHDatabase(settings)
    try:
        Base.metadata.create_all(database.engine)
        logger.info("Ensured %s tables exist", backend_name)
        if seed:
            seed_demo_records(database)
    finally:
        database.close()


# -----------------------------------------------------------------------------
def initialize_database(settings: DatabaseSettings, seed: bool = False) -> None:
    try:
        run_database_initialization(settings, seed=seed)
    except (SQLAlchemyError, ValueError) as exc:
        logger.error("Database initialization failed: %s", exc)
        raise SystemExit(1) from exc
    except Exception as exc:
        logger.exception("Unexpected error during database initialization.")
        raise SystemExit(1) from exc
