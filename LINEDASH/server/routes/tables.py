from __future__ import annotations

from json import JSONDecodeError

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from LINEDASH.server.configurations import ServerSettings
from LINEDASH.server.database.database import LINEDASHDatabase
from LINEDASH.server.dependencies import get_database, get_settings
from LINEDASH.server.schemas.tables import (
    RowUpdateResponse,
    TableListResponse,
    TableOptionResponse,
    TableRowsResponse,
)
from LINEDASH.server.services.browser import (
    apply_row_update,
    fetch_table_rows,
    list_tables,
    validate_row_update,
)
from LINEDASH.server.services.identifiers import sanitize_table_identifier
from LINEDASH.server.utils.exceptions import LineDashError
from LINEDASH.server.utils.logger import logger
from LINEDASH.server.utils.types import coerce_bool, coerce_row_limit, coerce_since_date


router = APIRouter(prefix="/tables", tags=["tables"])


###############################################################################
@router.get(
    "",
    response_model=TableListResponse | TableRowsResponse,
    status_code=status.HTTP_200_OK,
)
def get_tables(
    schema: str | None = Query(None),
    include_system: str | None = Query(None, alias="includeSystem"),
    table: str | None = Query(None),
    line_id: str | None = Query(None, alias="lineId"),
    since: str | None = Query(None),
    limit: str | None = Query(None),
    database: LINEDASHDatabase = Depends(get_database),
    settings: ServerSettings = Depends(get_settings),
) -> TableListResponse | TableRowsResponse:
    """List base tables, or fetch rows of one table when ``table`` is given."""
    if not table:
        return load_table_list(database, schema, coerce_bool(include_system, False))

    browser = settings.browser
    try:
        identifier = sanitize_table_identifier(table)
        result = fetch_table_rows(
            database.engine,
            identifier,
            limit=coerce_row_limit(limit, browser.default_limit, browser.max_limit),
            since=coerce_since_date(since, browser.default_since_days),
            line_id=line_id,
        )
    except LineDashError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to load table data for %s", table)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load table data",
        ) from exc

    return TableRowsResponse(
        table=result.table,
        since=result.since,
        limit=result.limit,
        row_count=result.row_count,
        columns=result.columns,
        rows=result.rows,
        line_id=result.line_id,
    )


# -----------------------------------------------------------------------------
def load_table_list(
    database: LINEDASHDatabase, schema: str | None, include_system: bool
) -> TableListResponse:
    try:
        options = list_tables(database.engine, schema=schema, include_system=include_system)
    except SQLAlchemyError as exc:
        logger.exception("Unable to list database tables.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load table list",
        ) from exc

    return TableListResponse(
        tables=[
            TableOptionResponse(
                schema_name=option.schema,
                name=option.name,
                full_name=option.full_name,
            )
            for option in options
        ]
    )


###############################################################################
@router.patch(
    "/update",
    response_model=RowUpdateResponse,
    status_code=status.HTTP_200_OK,
)
async def update_table_row(
    request: Request,
    database: LINEDASHDatabase = Depends(get_database),
) -> RowUpdateResponse:
    """Update the comment and/or needtosend fields of a single row."""
    try:
        payload = await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        payload = None

    try:
        update = validate_row_update(payload)
    except LineDashError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    try:
        await run_in_threadpool(apply_row_update, database.engine, update)
    except LineDashError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to update row %s of %s", update.row_id, update.identifier)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update the row.",
        ) from exc

    return RowUpdateResponse(success=True)
