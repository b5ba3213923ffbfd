from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

import sqlalchemy
from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError

from LINEDASH.server.database.utils import is_unknown_column_error, quote_table_identifier
from LINEDASH.server.services.identifiers import TableIdentifier, sanitize_table_identifier
from LINEDASH.server.utils.constants import (
    COMMENT_COLUMN,
    CREATED_AT_COLUMN,
    ID_COLUMN,
    LINE_ID_COLUMN,
    MAX_ROW_ID,
    MIN_ROW_ID,
    NEEDTOSEND_COLUMN,
    SYSTEM_SCHEMAS,
)
from LINEDASH.server.utils.exceptions import (
    InvalidComment,
    InvalidFlag,
    InvalidId,
    MissingTable,
    MissingUpdates,
    NoFieldsProvided,
    RowNotFound,
)
from LINEDASH.server.utils.logger import logger
from LINEDASH.server.utils.types import parse_leading_int

NUMERIC_KEY_REGEX = re.compile(r"^\d+$")


###############################################################################
@dataclass(frozen=True)
class TableOption:
    schema: str | None
    name: str

    # -------------------------------------------------------------------------
    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name


###############################################################################
@dataclass
class TableRowsResult:
    table: str
    limit: int
    since: str | None
    line_id: str | None
    rows: list[dict[str, Any]] = field(default_factory=list)

    # -------------------------------------------------------------------------
    @property
    def columns(self) -> list[str]:
        return list(self.rows[0].keys()) if self.rows else []

    # -------------------------------------------------------------------------
    @property
    def row_count(self) -> int:
        return len(self.rows)


###############################################################################
@dataclass(frozen=True)
class RowUpdate:
    identifier: TableIdentifier
    row_id: int
    values: dict[str, Any]


# [TABLE LISTING]
###############################################################################
def list_tables(
    engine: Engine, schema: str | None = None, include_system: bool = False
) -> list[TableOption]:
    inspector = sqlalchemy.inspect(engine)
    available_schemas = inspector.get_schema_names()
    if schema:
        schemas = [name for name in available_schemas if name == schema]
    elif include_system:
        schemas = list(available_schemas)
    else:
        schemas = [
            name for name in available_schemas if name.lower() not in SYSTEM_SCHEMAS
        ]

    options: list[TableOption] = []
    for schema_name in schemas:
        # get_table_names never reports views
        for table_name in inspector.get_table_names(schema=schema_name):
            options.append(TableOption(schema=schema_name, name=table_name))

    return sorted(options, key=lambda option: (option.schema or "", option.name))


# [ROW NORMALIZATION]
###############################################################################
def normalize_rows(rows: list[Any]) -> list[dict[str, Any]]:
    normalized: list[dict[str, Any]] = []
    for row in rows:
        items = row.items() if hasattr(row, "items") else dict(row).items()
        normalized.append(
            {
                key: value
                for key, value in items
                if not (isinstance(key, int) or NUMERIC_KEY_REGEX.match(str(key)))
            }
        )
    return normalized


# [ROW FETCH]
###############################################################################
def select_recent_rows(
    engine: Engine,
    table_sql: str,
    since: datetime,
    line_id: str | None,
    limit: int,
) -> list[Any]:
    filters = [f"{CREATED_AT_COLUMN} >= :since"]
    params: dict[str, Any] = {"since": since, "limit": limit}
    if line_id is not None:
        filters.append(f"{LINE_ID_COLUMN} = :line_id")
        params["line_id"] = line_id

    statement = text(
        f"SELECT * FROM {table_sql} WHERE {' AND '.join(filters)} "
        f"ORDER BY {CREATED_AT_COLUMN} DESC LIMIT :limit"
    ).bindparams(bindparam("since", type_=DateTime()))
    with engine.connect() as conn:
        return list(conn.execute(statement, params).mappings().all())


# -----------------------------------------------------------------------------
def select_any_rows(engine: Engine, table_sql: str, limit: int) -> list[Any]:
    statement = text(f"SELECT * FROM {table_sql} LIMIT :limit")
    with engine.connect() as conn:
        return list(conn.execute(statement, {"limit": limit}).mappings().all())


# -----------------------------------------------------------------------------
def fetch_table_rows(
    engine: Engine,
    identifier: TableIdentifier,
    limit: int,
    since: str,
    line_id: str | None = None,
) -> TableRowsResult:
    """Fetch rows of a runtime-selected table, degrading the filters as needed.

    Tables are not required to carry ``created_at`` or ``line_id``. When the
    storage engine reports an unknown column the query is retried first
    without the line filter, then without any filter. Other errors propagate.
    The result reports the filters that were actually applied.
    """
    table_sql = quote_table_identifier(identifier, engine.dialect)
    since_boundary = datetime.combine(date.fromisoformat(since), time.min)
    line_filter = line_id or None
    applied_since: str | None = since
    applied_line_id = line_filter
    rows: list[Any] | None = None

    try:
        rows = select_recent_rows(engine, table_sql, since_boundary, line_filter, limit)
    except DBAPIError as exc:
        if not is_unknown_column_error(exc):
            raise
        applied_line_id = None
        if line_filter is not None:
            logger.info(
                "Table %s rejected the line filter, retrying with the time filter only",
                identifier,
            )
            try:
                rows = select_recent_rows(engine, table_sql, since_boundary, None, limit)
            except DBAPIError as inner_exc:
                if not is_unknown_column_error(inner_exc):
                    raise

    if rows is None:
        logger.info("Table %s has no time column, loading unfiltered rows", identifier)
        applied_since = None
        rows = select_any_rows(engine, table_sql, limit)

    return TableRowsResult(
        table=identifier.full_name,
        limit=limit,
        since=applied_since,
        line_id=applied_line_id,
        rows=normalize_rows(rows),
    )


# [ROW UPDATE]
###############################################################################
def validate_row_update(payload: Any) -> RowUpdate:
    body = payload if isinstance(payload, dict) else {}

    table = body.get("table")
    if not table or not isinstance(table, str):
        raise MissingTable()

    raw_id = body.get("id")
    if raw_id is None:
        raise InvalidId("Parameter 'id' is required.")
    row_id = parse_leading_int(raw_id)
    if row_id is None or not MIN_ROW_ID <= row_id <= MAX_ROW_ID:
        raise InvalidId()

    updates = body.get("updates")
    if not isinstance(updates, dict):
        raise MissingUpdates()

    values: dict[str, Any] = {}
    if COMMENT_COLUMN in updates:
        comment = updates[COMMENT_COLUMN]
        if comment is not None and not isinstance(comment, str):
            raise InvalidComment()
        values[COMMENT_COLUMN] = comment if comment is not None else ""

    if NEEDTOSEND_COLUMN in updates:
        flag = parse_leading_int(updates[NEEDTOSEND_COLUMN])
        if flag not in (0, 1):
            raise InvalidFlag()
        values[NEEDTOSEND_COLUMN] = flag

    if not values:
        raise NoFieldsProvided()

    return RowUpdate(
        identifier=sanitize_table_identifier(table),
        row_id=row_id,
        values=values,
    )


# -----------------------------------------------------------------------------
def apply_row_update(engine: Engine, update: RowUpdate) -> int:
    preparer = engine.dialect.identifier_preparer
    table_sql = quote_table_identifier(update.identifier, engine.dialect)
    set_clause = ", ".join(
        f"{preparer.quote(column)} = :{column}" for column in update.values
    )
    statement = text(
        f"UPDATE {table_sql} SET {set_clause} WHERE {preparer.quote(ID_COLUMN)} = :row_id"
    )
    params = {**update.values, "row_id": update.row_id}
    with engine.begin() as conn:
        result = conn.execute(statement, params)
        matched = result.rowcount

    if matched == 0:
        raise RowNotFound(
            f"Row {update.row_id} was not found in {update.identifier.full_name}."
        )
    logger.info(
        "Updated %s on %s row %d",
        ", ".join(update.values),
        update.identifier,
        update.row_id,
    )
    return matched
