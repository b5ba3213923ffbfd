"""
Unit tests for request value coercion helpers.
"""

from __future__ import annotations

from datetime import date

import pytest

from LINEDASH.server.utils.types import (
    coerce_bool,
    coerce_row_limit,
    coerce_since_date,
    parse_leading_int,
)


class TestParseLeadingInt:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("7", 7),
            (7, 7),
            ("  42abc", 42),
            ("-3", -3),
            ("abc", None),
            ("", None),
            (None, None),
            (True, None),
            (7.9, 7),
        ],
    )
    def test_parses_integer_prefix(self, value, expected):
        assert parse_leading_int(value) == expected


class TestCoerceRowLimit:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 200),
            ("", 200),
            ("abc", 200),
            ("0", 200),
            ("-5", 200),
            ("50", 50),
            ("5000", 1000),
            ("1000", 1000),
        ],
    )
    def test_limit_is_defaulted_and_capped(self, value, expected):
        assert coerce_row_limit(value, 200, 1000) == expected


class TestCoerceSinceDate:
    def test_valid_date_is_kept(self):
        assert coerce_since_date("2024-02-29", 3, today=date(2024, 3, 10)) == "2024-02-29"

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-01", "2024-02-30"])
    def test_invalid_values_fall_back_to_default_window(self, value):
        assert coerce_since_date(value, 3, today=date(2024, 3, 10)) == "2024-03-07"


class TestCoerceBool:
    @pytest.mark.parametrize("value", ["1", "true", "YES", "on", True])
    def test_truthy(self, value):
        assert coerce_bool(value, False) is True

    @pytest.mark.parametrize("value", ["0", "false", "off", False])
    def test_falsy(self, value):
        assert coerce_bool(value, True) is False

    def test_unknown_values_use_default(self):
        assert coerce_bool("maybe", True) is True
        assert coerce_bool(None, False) is False
