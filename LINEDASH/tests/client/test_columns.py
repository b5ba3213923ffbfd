"""
Unit tests for cell formatting, step-flow rendering, filtering and sorting.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from LINEDASH.app.client.columns import (
    ColumnKind,
    SortKey,
    build_display_columns,
    build_step_flow,
    format_cell_value,
    render_cell,
    render_step_flow,
    row_matches_filter,
    searchable_value,
    sort_rows,
)


class TestFormatCellValue:
    def test_null_is_a_muted_marker(self):
        cell = format_cell_value(None)
        assert cell.text == "NULL"
        assert cell.muted is True

    def test_empty_string_is_quoted(self):
        cell = format_cell_value("")
        assert cell.text == '""'
        assert cell.muted is True

    def test_booleans_are_upper_case(self):
        assert format_cell_value(True).text == "TRUE"
        assert format_cell_value(False).text == "FALSE"

    def test_numbers_and_dates(self):
        assert format_cell_value(42).text == "42"
        assert format_cell_value(1.5).text == "1.5"
        assert format_cell_value(datetime(2024, 5, 1, 8, 30)).text == "2024-05-01T08:30:00"

    def test_decimals_are_plain_numbers(self):
        cell = format_cell_value(Decimal("1.50"))
        assert cell.text == "1.50"
        assert cell.muted is False

    def test_long_strings_wrap(self):
        assert format_cell_value("x" * 120).wrap is False
        assert format_cell_value("x" * 121).wrap is True

    def test_structures_are_json(self):
        assert format_cell_value({"a": [1, 2]}).text == '{"a": [1, 2]}'


class TestSearchableValue:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            ("MiXeD", "mixed"),
            (12, "12"),
            (Decimal("1.50"), "1.50"),
            (True, "true"),
            ({"K": "V"}, '{"k": "v"}'),
        ],
    )
    def test_lower_cased_text(self, value, expected):
        assert searchable_value(value) == expected


class TestDisplayColumns:
    def test_step_columns_fold_into_one(self):
        columns = ["id", "status", "main_step", "metro_steps", "inform_step", "comment", "needtosend"]
        display = build_display_columns(columns)
        assert [column.id for column in display] == [
            "id",
            "status",
            "metro_step_flow",
            "comment",
            "needtosend",
        ]
        step = display[2]
        assert step.kind == ColumnKind.STEP_FLOW
        assert step.header == "main_step"
        assert step.sortable is False
        assert display[3].kind == ColumnKind.COMMENT
        assert display[4].kind == ColumnKind.NEEDTOSEND

    def test_no_folding_without_main_or_metro_steps(self):
        columns = ["id", "inform_step", "metro_end_step"]
        display = build_display_columns(columns)
        assert [column.id for column in display] == columns
        assert all(column.kind == ColumnKind.VALUE for column in display)

    def test_step_flow_accessor_prefers_main_step(self):
        display = build_display_columns(["metro_steps", "main_step"])
        (column,) = display
        assert column.value({"main_step": "S1", "metro_steps": "S2"}) == "S1"
        assert column.value({"main_step": None, "metro_steps": "S2"}) == "S2"


class TestStepFlow:
    def test_order_highlight_and_end(self):
        row = {
            "main_step": "S100",
            "metro_steps": "S200, S300,,S200",
            "metro_current_step": "S300",
            "metro_end_step": "S500",
            "inform_step": "S400",
            "status": "Running",
        }
        segments = build_step_flow(row)
        assert [segment.label for segment in segments] == ["S100", "S200", "S300", "S400", "S500"]
        assert [segment.label for segment in segments if segment.is_highlight] == ["S300"]
        assert [segment.label for segment in segments if segment.is_end] == ["S500"]
        assert render_step_flow(row).text == "S100 > S200 > [S300] > S400 > (S500)"

    def test_main_complete_highlights_main_step(self):
        row = {
            "main_step": "S100",
            "metro_steps": ["S200"],
            "metro_current_step": "S200",
            "status": "MAIN_COMPLETE",
        }
        highlighted = [segment.label for segment in build_step_flow(row) if segment.is_highlight]
        assert highlighted == ["S100"]

    def test_custom_end_step_wins(self):
        row = {"main_step": "S1", "metro_end_step": "S9", "custom_end_step": "S7"}
        segments = build_step_flow(row)
        assert [segment.label for segment in segments] == ["S1", "S7"]
        assert segments[-1].is_end is True

    def test_end_step_already_listed_is_not_repeated(self):
        row = {"main_step": "S1", "metro_steps": "S2,S3", "metro_end_step": "S2"}
        assert [segment.label for segment in build_step_flow(row)] == ["S1", "S2", "S3"]

    def test_no_steps_renders_dash(self):
        cell = render_step_flow({"main_step": "  ", "metro_steps": None})
        assert cell.text == "-"
        assert cell.muted is True


class TestFilterAndSort:
    rows = [
        {"id": 1, "lot": "ALPHA", "weight": 30, "note": None},
        {"id": 2, "lot": "beta", "weight": None, "note": "urgent"},
        {"id": 3, "lot": "Gamma", "weight": 10, "note": "Urgent fix"},
    ]
    columns = ["id", "lot", "weight", "note"]

    def test_filter_is_case_insensitive_over_columns(self):
        matches = [row["id"] for row in self.rows if row_matches_filter(row, self.columns, "URGENT")]
        assert matches == [2, 3]

    def test_empty_filter_matches_everything(self):
        assert all(row_matches_filter(row, self.columns, "") for row in self.rows)

    def test_filter_ignores_columns_not_listed(self):
        assert not row_matches_filter(self.rows[1], ["id", "lot"], "urgent")

    def test_sort_ascending_puts_missing_last(self):
        display = build_display_columns(self.columns)
        ordered = sort_rows(self.rows, [SortKey("weight")], display)
        assert [row["id"] for row in ordered] == [3, 1, 2]

    def test_sort_descending_puts_missing_last(self):
        display = build_display_columns(self.columns)
        ordered = sort_rows(self.rows, [SortKey("weight", descending=True)], display)
        assert [row["id"] for row in ordered] == [1, 3, 2]

    def test_multi_key_sort(self):
        rows = [
            {"group": "b", "rank": 2},
            {"group": "a", "rank": 2},
            {"group": "b", "rank": 1},
        ]
        display = build_display_columns(["group", "rank"])
        ordered = sort_rows(rows, [SortKey("group"), SortKey("rank")], display)
        assert ordered == [
            {"group": "a", "rank": 2},
            {"group": "b", "rank": 1},
            {"group": "b", "rank": 2},
        ]

    def test_comment_column_is_not_sortable(self):
        rows = [{"id": 1, "comment": "b"}, {"id": 2, "comment": "a"}]
        display = build_display_columns(["id", "comment"])
        assert [column.sortable for column in display] == [True, False]
        ordered = sort_rows(rows, [SortKey("comment")], display)
        assert [row["id"] for row in ordered] == [1, 2]

    def test_decimals_sort_with_other_numbers(self):
        rows = [{"weight": Decimal("2.5")}, {"weight": 1}, {"weight": 3.0}]
        display = build_display_columns(["weight"])
        ordered = sort_rows(rows, [SortKey("weight")], display)
        assert [row["weight"] for row in ordered] == [1, Decimal("2.5"), 3.0]

    def test_unsortable_columns_are_ignored(self):
        rows = [{"main_step": "S2"}, {"main_step": "S1"}]
        display = build_display_columns(["main_step"])
        assert sort_rows(rows, [SortKey("metro_step_flow")], display) == rows


class TestRenderCell:
    def make_state(self):
        from LINEDASH.app.client.indicators import SaveIndicatorBoard
        from LINEDASH.app.client.scheduler import ManualScheduler

        class State:
            comment_drafts = {"5": "draft"}
            comment_editing = {"5": True}
            needtosend_drafts = {}
            updating_cells = {}
            update_errors = {"5:needtosend": "boom"}
            indicators = SaveIndicatorBoard(ManualScheduler())

        return State()

    def test_dispatches_on_column_kind(self):
        state = self.make_state()
        display = {
            column.id: column
            for column in build_display_columns(["id", "comment", "needtosend", "main_step"])
        }
        row = {"id": 5, "comment": None, "needtosend": "1", "main_step": "S1"}

        comment = render_cell(display["comment"], row, state)
        assert comment.value == ""
        assert comment.draft == "draft"
        assert comment.is_editing is True

        flag = render_cell(display["needtosend"], row, state)
        assert flag.checked is True
        assert flag.error == "boom"

        assert render_cell(display["metro_step_flow"], row, state).text == "[S1]"
        assert render_cell(display["id"], row, state).text == "5"

    def test_rows_without_id_fall_back_to_plain_values(self):
        state = self.make_state()
        (comment,) = build_display_columns(["comment"])
        assert render_cell(comment, {"comment": None}, state).text == "NULL"
