from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from LINEDASH.app.client.indicators import SaveIndicatorBoard
from LINEDASH.app.constants import (
    COMMENT_FIELD,
    ID_FIELD,
    LONG_TEXT_THRESHOLD,
    MAIN_COMPLETE_STATUS,
    NEEDTOSEND_FIELD,
    NULL_MARKER,
    STEP_COLUMN_KEYS,
    STEP_FLOW_COLUMN_ID,
)


###############################################################################
class ColumnKind(str, Enum):
    VALUE = "value"
    COMMENT = "comment"
    NEEDTOSEND = "needtosend"
    STEP_FLOW = "step_flow"


###############################################################################
@dataclass(frozen=True)
class CellText:
    text: str
    muted: bool = False
    wrap: bool = False


###############################################################################
@dataclass(frozen=True)
class DisplayColumn:
    id: str
    header: str
    kind: ColumnKind = ColumnKind.VALUE
    sortable: bool = True

    # -------------------------------------------------------------------------
    def value(self, row: Mapping[str, Any]) -> Any:
        if self.kind == ColumnKind.STEP_FLOW:
            main_step = row.get("main_step")
            return main_step if main_step is not None else row.get("metro_steps")
        return row.get(self.id)


###############################################################################
@dataclass(frozen=True)
class SortKey:
    column: str
    descending: bool = False


###############################################################################
@dataclass(frozen=True)
class StepSegment:
    label: str
    is_highlight: bool = False
    is_end: bool = False


###############################################################################
@dataclass(frozen=True)
class CommentCellView:
    record_id: str
    value: str
    draft: str
    is_editing: bool
    is_saving: bool
    error: str | None
    indicator: str | None


###############################################################################
@dataclass(frozen=True)
class NeedToSendCellView:
    record_id: str
    checked: bool
    is_saving: bool
    error: str | None
    indicator: str | None


###############################################################################
class EditableCellState(Protocol):
    comment_drafts: dict[str, str]
    comment_editing: dict[str, bool]
    needtosend_drafts: dict[str, int]
    updating_cells: dict[str, bool]
    update_errors: dict[str, str]
    indicators: SaveIndicatorBoard


# -----------------------------------------------------------------------------
def cell_key(record_id: str, field: str) -> str:
    return f"{record_id}:{field}"


# -----------------------------------------------------------------------------
def to_json_text(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


# -----------------------------------------------------------------------------
def format_cell_value(value: Any) -> CellText:
    if value is None:
        return CellText(NULL_MARKER, muted=True)
    if isinstance(value, bool):
        return CellText("TRUE" if value else "FALSE")
    if isinstance(value, (int, float, Decimal)):
        return CellText(str(value))
    if isinstance(value, (datetime, date)):
        return CellText(value.isoformat())
    if isinstance(value, str):
        if not value:
            return CellText('""', muted=True)
        return CellText(value, wrap=len(value) > LONG_TEXT_THRESHOLD)
    return CellText(to_json_text(value))


# -----------------------------------------------------------------------------
def searchable_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, (int, float, Decimal)):
        return str(value).lower()
    if isinstance(value, (datetime, date)):
        return value.isoformat().lower()
    return to_json_text(value).lower()


# -----------------------------------------------------------------------------
def build_display_columns(columns: Sequence[str]) -> list[DisplayColumn]:
    """Map raw column names to display columns.

    When ``main_step`` or ``metro_steps`` is present, every step column is
    folded into one synthetic step-flow column placed where the first step
    column used to be.

    """
    step_positions = [
        (index, key) for index, key in enumerate(columns) if key in STEP_COLUMN_KEYS
    ]
    combine_steps = any(key in ("main_step", "metro_steps") for _, key in step_positions)

    display: list[DisplayColumn] = []
    for key in columns:
        if combine_steps and key in STEP_COLUMN_KEYS:
            continue
        if key == COMMENT_FIELD:
            display.append(DisplayColumn(key, key, ColumnKind.COMMENT, sortable=False))
        elif key == NEEDTOSEND_FIELD:
            display.append(DisplayColumn(key, key, ColumnKind.NEEDTOSEND))
        else:
            display.append(DisplayColumn(key, key))

    if combine_steps:
        first_index, first_key = step_positions[0]
        step_column = DisplayColumn(
            STEP_FLOW_COLUMN_ID,
            first_key,
            ColumnKind.STEP_FLOW,
            sortable=False,
        )
        display.insert(min(first_index, len(display)), step_column)

    return display


# -----------------------------------------------------------------------------
def normalize_step_value(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None


# -----------------------------------------------------------------------------
def parse_metro_steps(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        parts = value
    elif isinstance(value, str):
        parts = value.split(",")
    else:
        parts = [value]
    steps = [normalize_step_value(part) for part in parts]
    return [step for step in steps if step]


# -----------------------------------------------------------------------------
def build_step_flow(row: Mapping[str, Any]) -> list[StepSegment]:
    main_step = normalize_step_value(row.get("main_step"))
    metro_steps = parse_metro_steps(row.get("metro_steps"))
    current_step = normalize_step_value(row.get("metro_current_step"))
    inform_step = normalize_step_value(row.get("inform_step"))
    status = normalize_step_value(row.get("status"))
    end_step = normalize_step_value(row.get("custom_end_step")) or normalize_step_value(
        row.get("metro_end_step")
    )

    if status == MAIN_COMPLETE_STATUS:
        highlight = main_step or current_step
    else:
        highlight = current_step or main_step

    ordered: list[str] = []
    if main_step:
        ordered.append(main_step)
    ordered.extend(metro_steps)
    if inform_step:
        ordered.append(inform_step)
    if end_step and end_step not in ordered:
        ordered.append(end_step)

    # first occurrence wins
    steps = list(dict.fromkeys(ordered))
    return [
        StepSegment(
            label=step,
            is_highlight=highlight is not None and step == highlight,
            is_end=end_step is not None and step == end_step,
        )
        for step in steps
    ]


# -----------------------------------------------------------------------------
def render_step_flow(row: Mapping[str, Any]) -> CellText:
    segments = build_step_flow(row)
    if not segments:
        return CellText("-", muted=True)
    labels = []
    for segment in segments:
        if segment.is_highlight:
            labels.append(f"[{segment.label}]")
        elif segment.is_end:
            labels.append(f"({segment.label})")
        else:
            labels.append(segment.label)
    return CellText(" > ".join(labels))


# -----------------------------------------------------------------------------
def row_matches_filter(
    row: Mapping[str, Any], columns: Sequence[str], query: str
) -> bool:
    if not query:
        return True
    needle = query.lower()
    return any(needle in searchable_value(row.get(key)) for key in columns)


# -----------------------------------------------------------------------------
def sort_value(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float, Decimal)):
        return (0, value)
    return (1, searchable_value(value))


# -----------------------------------------------------------------------------
def sort_rows(
    rows: Sequence[dict[str, Any]],
    sorting: Sequence[SortKey],
    columns: Sequence[DisplayColumn],
) -> list[dict[str, Any]]:
    by_id = {column.id: column for column in columns}
    ordered = list(rows)
    # least significant key first, relying on sort stability
    for key in reversed(sorting):
        column = by_id.get(key.column)
        if column is None or not column.sortable:
            continue
        ordered.sort(key=lambda row: sort_value(column.value(row)), reverse=key.descending)
        # missing values always sink to the bottom
        ordered.sort(key=lambda row: column.value(row) is None)
    return ordered


# -----------------------------------------------------------------------------
def row_record_id(row: Mapping[str, Any]) -> str | None:
    raw_id = row.get(ID_FIELD)
    if raw_id is None:
        return None
    return str(raw_id)


# -----------------------------------------------------------------------------
def base_comment_value(row: Mapping[str, Any]) -> str:
    value = row.get(COMMENT_FIELD)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


# -----------------------------------------------------------------------------
def base_needtosend_value(row: Mapping[str, Any]) -> int:
    value = row.get(NEEDTOSEND_FIELD)
    try:
        return 1 if int(value) == 1 else 0
    except (TypeError, ValueError):
        return 0


# -----------------------------------------------------------------------------
def build_comment_cell(
    row: Mapping[str, Any], state: EditableCellState
) -> CommentCellView | None:
    record_id = row_record_id(row)
    if record_id is None:
        return None
    key = cell_key(record_id, COMMENT_FIELD)
    value = base_comment_value(row)
    indicator = state.indicators.indicator(key)
    return CommentCellView(
        record_id=record_id,
        value=value,
        draft=state.comment_drafts.get(record_id, value),
        is_editing=state.comment_editing.get(record_id, False),
        is_saving=state.updating_cells.get(key, False),
        error=state.update_errors.get(key),
        indicator=indicator.status if indicator else None,
    )


# -----------------------------------------------------------------------------
def build_needtosend_cell(
    row: Mapping[str, Any], state: EditableCellState
) -> NeedToSendCellView | None:
    record_id = row_record_id(row)
    if record_id is None:
        return None
    key = cell_key(record_id, NEEDTOSEND_FIELD)
    value = state.needtosend_drafts.get(record_id, base_needtosend_value(row))
    indicator = state.indicators.indicator(key)
    return NeedToSendCellView(
        record_id=record_id,
        checked=value == 1,
        is_saving=state.updating_cells.get(key, False),
        error=state.update_errors.get(key),
        indicator=indicator.status if indicator else None,
    )


# -----------------------------------------------------------------------------
def render_cell(
    column: DisplayColumn, row: Mapping[str, Any], state: EditableCellState
) -> CellText | CommentCellView | NeedToSendCellView:
    if column.kind == ColumnKind.STEP_FLOW:
        return render_step_flow(row)
    if column.kind == ColumnKind.COMMENT:
        view = build_comment_cell(row, state)
        if view is not None:
            return view
    elif column.kind == ColumnKind.NEEDTOSEND:
        flag_view = build_needtosend_cell(row, state)
        if flag_view is not None:
            return flag_view
    return format_cell_value(row.get(column.id))
