from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

from LINEDASH.app.client.api import DashboardAPIError
from LINEDASH.app.client.columns import (
    DisplayColumn,
    SortKey,
    build_display_columns,
    cell_key,
    row_matches_filter,
    sort_rows,
)
from LINEDASH.app.client.indicators import IndicatorTimings, SaveIndicatorBoard
from LINEDASH.app.client.models import TableDataPayload, TableOption
from LINEDASH.app.client.scheduler import AsyncioScheduler, Scheduler
from LINEDASH.app.configuration import Configuration
from LINEDASH.app.constants import COMMENT_FIELD, EDITABLE_FIELDS, NEEDTOSEND_FIELD
from LINEDASH.app.logger import logger


###############################################################################
class TableBrowserAPI(Protocol):
    async def fetch_tables(self) -> list[TableOption]: ...

    async def fetch_rows(
        self, table: str, limit: int, line_id: str | None = None, since: str | None = None
    ) -> TableDataPayload: ...

    async def update_row(
        self, table: str, record_id: str, updates: dict[str, Any]
    ) -> None: ...


###############################################################################
class BrowserPhase(str, Enum):
    IDLE = "idle"
    LOADING_TABLES = "loading_tables"
    LOADING_ROWS = "loading_rows"
    READY = "ready"


# -----------------------------------------------------------------------------
def pick_preferred_table(
    tables: Sequence[TableOption], current: str, default_table: str
) -> str:
    """Keep the current table when still listed, then fall back to the
    default table, then to the first listed table.

    Both lookups accept either the qualified or the bare table name.
    """
    if not tables:
        return ""

    def find(name: str) -> TableOption | None:
        for option in tables:
            if option.full_name == name:
                return option
        for option in tables:
            if option.name == name:
                return option
        return None

    preferred = (find(current) if current else None) or find(default_table) or tables[0]
    return preferred.full_name


###############################################################################
class TableBrowserController:
    """Client-side state of the table browser.

    Every table or row request is tagged with a sequence number and only the
    latest one may write its result back. Cell saves go through
    ``handle_update``, which drives the per-cell save indicators.

    """

    def __init__(
        self,
        api: TableBrowserAPI,
        line_id: str = "",
        scheduler: Scheduler | None = None,
        configuration: Configuration | None = None,
    ) -> None:
        values = (configuration or Configuration()).get_configuration()
        self.api = api
        self.line_id = line_id
        self.default_table = str(values["default_table"])
        self.max_limit = int(values["max_limit"])
        self.limit = int(values["default_limit"])
        self.indicators = SaveIndicatorBoard(
            scheduler or AsyncioScheduler(),
            IndicatorTimings(
                saving_delay=float(values["saving_delay"]),
                min_saving_visible=float(values["min_saving_visible"]),
                saved_visible=float(values["saved_visible"]),
            ),
        )

        self.tables: list[TableOption] = []
        self.selected_table = ""
        self.columns: list[str] = []
        self.rows: list[dict[str, Any]] = []
        self.applied_limit = self.limit
        self.applied_since: str | None = None
        self.applied_line_id: str | None = None
        self.last_fetched_count = 0
        self.is_loading_tables = False
        self.is_loading_rows = False
        self.table_list_error: str | None = None
        self.rows_error: str | None = None

        self.filter_text = ""
        self.sorting: list[SortKey] = []

        self.comment_drafts: dict[str, str] = {}
        self.comment_editing: dict[str, bool] = {}
        self.needtosend_drafts: dict[str, int] = {}
        self.updating_cells: dict[str, bool] = {}
        self.update_errors: dict[str, str] = {}

        self.mounted = False
        self._tables_request = 0
        self._rows_request = 0

    # -------------------------------------------------------------------------
    @property
    def phase(self) -> BrowserPhase:
        if self.is_loading_tables:
            return BrowserPhase.LOADING_TABLES
        if self.is_loading_rows:
            return BrowserPhase.LOADING_ROWS
        return BrowserPhase.READY if self.mounted else BrowserPhase.IDLE

    # -------------------------------------------------------------------------
    async def mount(self) -> None:
        self.mounted = True
        await self.fetch_tables()

    # -------------------------------------------------------------------------
    def unmount(self) -> None:
        self.mounted = False
        # responses still in flight must be ignored
        self._tables_request += 1
        self._rows_request += 1
        self.is_loading_tables = False
        self.is_loading_rows = False
        self.indicators.dispose()

    # -------------------------------------------------------------------------
    async def fetch_tables(self) -> None:
        self._tables_request += 1
        request_id = self._tables_request
        self.is_loading_tables = True
        self.table_list_error = None

        try:
            tables = await self.api.fetch_tables()
        except DashboardAPIError as exc:
            if request_id != self._tables_request:
                return
            logger.warning("Table list request failed: %s", exc.message)
            self.is_loading_tables = False
            self.table_list_error = exc.message
            self.tables = []
            await self._apply_selection("")
            return

        if request_id != self._tables_request:
            return
        self.is_loading_tables = False
        self.tables = list(tables)
        await self._apply_selection(
            pick_preferred_table(self.tables, self.selected_table, self.default_table)
        )

    # -------------------------------------------------------------------------
    async def _apply_selection(self, table_name: str) -> None:
        # the first selection after mount always loads, later ones only on change
        changed = table_name != self.selected_table
        self.selected_table = table_name
        if changed or not table_name:
            await self.fetch_rows()
        elif not self.columns and not self.rows_error:
            await self.fetch_rows()

    # -------------------------------------------------------------------------
    async def select_table(self, table_name: str) -> None:
        if table_name == self.selected_table:
            return
        self.selected_table = table_name
        await self.fetch_rows()

    # -------------------------------------------------------------------------
    async def set_limit(self, value: Any) -> None:
        try:
            candidate = int(float(value))
        except (TypeError, ValueError):
            return
        limit = min(max(candidate, 1), self.max_limit)
        if limit == self.limit:
            return
        self.limit = limit
        await self.fetch_rows()

    # -------------------------------------------------------------------------
    async def set_line_id(self, line_id: str) -> None:
        if line_id == self.line_id:
            return
        self.line_id = line_id
        await self.fetch_rows()

    # -------------------------------------------------------------------------
    def _clear_rows(self) -> None:
        self.columns = []
        self.rows = []
        self.last_fetched_count = 0

    # -------------------------------------------------------------------------
    def _clear_drafts(self) -> None:
        self.comment_drafts.clear()
        self.comment_editing.clear()
        self.needtosend_drafts.clear()

    # -------------------------------------------------------------------------
    async def fetch_rows(self) -> None:
        self._rows_request += 1
        request_id = self._rows_request

        if not self.selected_table:
            self.is_loading_rows = False
            self.rows_error = None
            self._clear_rows()
            return

        table = self.selected_table
        self.is_loading_rows = True
        self.rows_error = None
        try:
            payload = await self.api.fetch_rows(
                table, self.limit, line_id=self.line_id or None
            )
        except DashboardAPIError as exc:
            if request_id != self._rows_request:
                return
            logger.warning("Row request for %s failed: %s", table, exc.message)
            self.is_loading_rows = False
            self.rows_error = exc.message
            self._clear_rows()
            return

        if request_id != self._rows_request:
            logger.debug("Dropping stale rows response for %s", table)
            return

        self.is_loading_rows = False
        self.columns = list(payload.columns)
        self.rows = [dict(row) for row in payload.rows]
        self.last_fetched_count = payload.row_count
        self.applied_limit = payload.limit
        self.applied_since = payload.since
        self.applied_line_id = payload.line_id
        self._clear_drafts()

        # the server echoes the canonical table name
        if payload.table and payload.table != self.selected_table:
            self.selected_table = payload.table
            await self.fetch_rows()

    # -------------------------------------------------------------------------
    async def handle_update(self, record_id: str, updates: dict[str, Any]) -> bool:
        fields = [field for field in updates if field in EDITABLE_FIELDS]
        if not record_id or not fields:
            return False

        keys = [cell_key(record_id, field) for field in fields]
        if not self.selected_table:
            for key in keys:
                self.update_errors[key] = "Select a table before editing."
            return False

        # overlapping saves on the same cell are rejected
        if any(self.updating_cells.get(key) for key in keys):
            logger.debug("Save already in flight for %s", ", ".join(keys))
            return False

        payload = {field: updates[field] for field in fields}
        for key in keys:
            self.updating_cells[key] = True
            self.update_errors.pop(key, None)
        self.indicators.begin(keys)

        succeeded = False
        try:
            await self.api.update_row(self.selected_table, record_id, payload)
        except DashboardAPIError as exc:
            for key in keys:
                self.update_errors[key] = exc.message
            return False
        else:
            self._patch_row(record_id, payload)
            if COMMENT_FIELD in payload:
                self.comment_drafts.pop(record_id, None)
                self.comment_editing.pop(record_id, None)
            if NEEDTOSEND_FIELD in payload:
                self.needtosend_drafts.pop(record_id, None)
            succeeded = True
            return True
        finally:
            for key in keys:
                self.updating_cells.pop(key, None)
            self.indicators.finalize(keys, "success" if succeeded else "error")

    # -------------------------------------------------------------------------
    def _patch_row(self, record_id: str, values: dict[str, Any]) -> None:
        self.rows = [
            {**row, **values} if str(row.get("id", "")) == record_id else row
            for row in self.rows
        ]

    # -------------------------------------------------------------------------
    def clear_update_error(self, key: str) -> None:
        self.update_errors.pop(key, None)
        self.indicators.clear_error(key)

    # -------------------------------------------------------------------------
    def start_comment_edit(self, record_id: str, base_value: str) -> None:
        self.comment_drafts[record_id] = base_value
        self.comment_editing[record_id] = True
        self.clear_update_error(cell_key(record_id, COMMENT_FIELD))

    # -------------------------------------------------------------------------
    def set_comment_draft(self, record_id: str, value: str) -> None:
        self.comment_drafts[record_id] = value
        self.clear_update_error(cell_key(record_id, COMMENT_FIELD))

    # -------------------------------------------------------------------------
    def cancel_comment_edit(self, record_id: str) -> None:
        self.comment_drafts.pop(record_id, None)
        self.comment_editing.pop(record_id, None)
        self.clear_update_error(cell_key(record_id, COMMENT_FIELD))

    # -------------------------------------------------------------------------
    async def save_comment(self, record_id: str, base_value: str) -> bool:
        next_value = self.comment_drafts.get(record_id, base_value)
        if next_value == base_value:
            self.comment_drafts.pop(record_id, None)
            self.comment_editing.pop(record_id, None)
            return True
        succeeded = await self.handle_update(record_id, {COMMENT_FIELD: next_value})
        if succeeded:
            self.comment_editing.pop(record_id, None)
        return succeeded

    # -------------------------------------------------------------------------
    async def toggle_needtosend(
        self, record_id: str, checked: bool, base_value: int
    ) -> bool:
        value = 1 if checked else 0
        key = cell_key(record_id, NEEDTOSEND_FIELD)
        if value == base_value:
            self.needtosend_drafts.pop(record_id, None)
            self.clear_update_error(key)
            return True

        self.needtosend_drafts[record_id] = value
        self.clear_update_error(key)
        succeeded = await self.handle_update(record_id, {NEEDTOSEND_FIELD: value})
        if not succeeded:
            # the checkbox falls back to the stored value, the error stays
            self.needtosend_drafts.pop(record_id, None)
        return succeeded

    # -------------------------------------------------------------------------
    def set_filter(self, text: str) -> None:
        self.filter_text = text

    # -------------------------------------------------------------------------
    def set_sorting(self, sorting: Sequence[SortKey]) -> None:
        self.sorting = list(sorting)

    # -------------------------------------------------------------------------
    @property
    def display_columns(self) -> list[DisplayColumn]:
        return build_display_columns(self.columns)

    # -------------------------------------------------------------------------
    def visible_rows(self) -> list[dict[str, Any]]:
        matching = [
            row
            for row in self.rows
            if row_matches_filter(row, self.columns, self.filter_text)
        ]
        return sort_rows(matching, self.sorting, self.display_columns)
