from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from LINEDASH.server.configurations.base import (
    ensure_mapping,
    load_configuration_data,
    merge_environment_overrides,
)
from LINEDASH.server.utils.constants import (
    DEFAULT_DB_HOST,
    DEFAULT_DB_NAME,
    DEFAULT_DB_PASSWORD,
    DEFAULT_DB_PORT,
    DEFAULT_DB_USER,
    DEFAULT_ROW_LIMIT,
    DEFAULT_SINCE_DAYS,
    MAX_ROW_LIMIT,
    PRIMARY_TABLE,
    RECENT_ITEMS_LIMIT,
    SERVER_CONFIGURATION_FILE,
    TREND_LOOKBACK_DAYS,
)
from LINEDASH.server.utils.logger import logger
from LINEDASH.server.utils.types import (
    coerce_bool,
    coerce_int,
    coerce_str,
    coerce_str_or_none,
)
from LINEDASH.server.utils.variables import env_variables

DATABASE_ENV_FIELDS = {
    "DB_EMBEDDED": "embedded_database",
    "DB_ENGINE": "engine",
    "DB_HOST": "host",
    "DB_PORT": "port",
    "DB_USER": "username",
    "DB_PASSWORD": "password",
    "DB_NAME": "database_name",
    "DB_SQLITE_PATH": "sqlite_path",
}


# [SERVER SETTINGS]
###############################################################################
@dataclass(frozen=True)
class DatabaseSettings:
    embedded_database: bool
    engine: str | None
    host: str | None
    port: int | None
    database_name: str | None
    username: str | None
    password: str | None
    ssl: bool
    ssl_ca: str | None
    connect_timeout: int
    insert_batch_size: int
    pool_size: int = 10
    max_overflow: int = 0
    pool_timeout: int = 30
    sqlite_path: str | None = None


# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class FastAPISettings:
    title: str
    version: str
    description: str


# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class BrowserSettings:
    default_limit: int
    max_limit: int
    default_since_days: int


# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class DashboardSettings:
    primary_table: str
    trend_lookback_days: int
    recent_limit: int


# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerSettings:
    database: DatabaseSettings
    fastapi: FastAPISettings
    browser: BrowserSettings
    dashboard: DashboardSettings


# [BUILDER FUNCTIONS]
###############################################################################
def build_fastapi_settings(data: dict[str, Any]) -> FastAPISettings:
    payload = ensure_mapping(data)
    return FastAPISettings(
        title=coerce_str(payload.get("title"), "LINEDASH Backend"),
        version=coerce_str(payload.get("version"), "0.1.0"),
        description=coerce_str(
            payload.get("description"),
            "Line-production monitoring dashboard and generic table browser.",
        ),
    )


# -----------------------------------------------------------------------------
def build_browser_settings(data: dict[str, Any]) -> BrowserSettings:
    payload = ensure_mapping(data)
    max_limit = coerce_int(payload.get("max_limit"), MAX_ROW_LIMIT, minimum=1)
    return BrowserSettings(
        default_limit=coerce_int(
            payload.get("default_limit"), DEFAULT_ROW_LIMIT, minimum=1, maximum=max_limit
        ),
        max_limit=max_limit,
        default_since_days=coerce_int(
            payload.get("default_since_days"), DEFAULT_SINCE_DAYS, minimum=0
        ),
    )


# -----------------------------------------------------------------------------
def build_dashboard_settings(data: dict[str, Any]) -> DashboardSettings:
    payload = ensure_mapping(data)
    return DashboardSettings(
        primary_table=coerce_str(payload.get("primary_table"), PRIMARY_TABLE),
        trend_lookback_days=coerce_int(
            payload.get("trend_lookback_days"), TREND_LOOKBACK_DAYS, minimum=1
        ),
        recent_limit=coerce_int(
            payload.get("recent_limit"), RECENT_ITEMS_LIMIT, minimum=1, maximum=100
        ),
    )


# -----------------------------------------------------------------------------
def build_database_settings(payload: dict[str, Any] | Any) -> DatabaseSettings:
    payload = ensure_mapping(payload)
    embedded = coerce_bool(payload.get("embedded_database"), True)
    pool_size = coerce_int(payload.get("pool_size"), 10, minimum=1)
    max_overflow = coerce_int(payload.get("max_overflow"), 0, minimum=0)
    pool_timeout = coerce_int(payload.get("pool_timeout"), 30, minimum=1)
    insert_batch_size = coerce_int(payload.get("insert_batch_size"), 1000, minimum=1)
    if embedded:
        # External fields are ignored entirely when embedded DB is active
        return DatabaseSettings(
            embedded_database=True,
            engine=None,
            host=None,
            port=None,
            database_name=None,
            username=None,
            password=None,
            ssl=False,
            ssl_ca=None,
            connect_timeout=10,
            insert_batch_size=insert_batch_size,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            sqlite_path=coerce_str_or_none(payload.get("sqlite_path")),
        )

    # External DB mode
    engine_value = coerce_str_or_none(payload.get("engine")) or "mysql"
    return DatabaseSettings(
        embedded_database=False,
        engine=engine_value.lower(),
        host=coerce_str(payload.get("host"), DEFAULT_DB_HOST),
        port=coerce_int(payload.get("port"), DEFAULT_DB_PORT, minimum=1, maximum=65535),
        database_name=coerce_str(payload.get("database_name"), DEFAULT_DB_NAME),
        username=coerce_str(payload.get("username"), DEFAULT_DB_USER),
        password=coerce_str(payload.get("password"), DEFAULT_DB_PASSWORD),
        ssl=coerce_bool(payload.get("ssl"), False),
        ssl_ca=coerce_str_or_none(payload.get("ssl_ca")),
        connect_timeout=coerce_int(payload.get("connect_timeout"), 10, minimum=1),
        insert_batch_size=insert_batch_size,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        sqlite_path=None,
    )


# -----------------------------------------------------------------------------
def build_server_settings(
    data: dict[str, Any] | Any, environment: dict[str, str] | None = None
) -> ServerSettings:
    payload = ensure_mapping(data)
    database_payload = merge_environment_overrides(
        ensure_mapping(payload.get("database")),
        environment or {},
        DATABASE_ENV_FIELDS,
    )

    return ServerSettings(
        database=build_database_settings(database_payload),
        fastapi=build_fastapi_settings(ensure_mapping(payload.get("fastapi"))),
        browser=build_browser_settings(ensure_mapping(payload.get("browser"))),
        dashboard=build_dashboard_settings(ensure_mapping(payload.get("dashboard"))),
    )


# [SERVER CONFIGURATION LOADER]
###############################################################################
def get_server_settings(config_path: str | None = None) -> ServerSettings:
    path = config_path or SERVER_CONFIGURATION_FILE
    try:
        payload = load_configuration_data(path)
    except RuntimeError as exc:
        logger.warning("%s; falling back to default server settings", exc)
        payload = {}
    environment = env_variables.snapshot(tuple(DATABASE_ENV_FIELDS))

    return build_server_settings(payload, environment)


server_settings = get_server_settings()
