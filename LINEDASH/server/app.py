from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from LINEDASH.server.configurations import ServerSettings, server_settings
from LINEDASH.server.database.database import LINEDASHDatabase
from LINEDASH.server.routes.lines import router as lines_router
from LINEDASH.server.routes.tables import router as tables_router
from LINEDASH.server.utils.logger import logger


###############################################################################
def create_app(settings: ServerSettings | None = None) -> FastAPI:
    active_settings = settings or server_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # one pool per process, shared by every request handler
        database = LINEDASHDatabase(active_settings.database)
        app.state.database = database
        logger.info("%s started", active_settings.fastapi.title)
        try:
            yield
        finally:
            database.close()
            app.state.database = None

    app = FastAPI(
        title=active_settings.fastapi.title,
        version=active_settings.fastapi.version,
        description=active_settings.fastapi.description,
        lifespan=lifespan,
    )
    app.state.settings = active_settings
    app.state.database = None

    app.include_router(tables_router)
    app.include_router(lines_router)

    @app.get("/", include_in_schema=False)
    def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
