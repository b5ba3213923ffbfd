from __future__ import annotations

from fastapi import Request

from LINEDASH.server.configurations import ServerSettings
from LINEDASH.server.database.database import LINEDASHDatabase


# -----------------------------------------------------------------------------
def get_database(request: Request) -> LINEDASHDatabase:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database connection pool not initialized in application state")
    return database


# -----------------------------------------------------------------------------
def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings
