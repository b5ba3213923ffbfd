from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# -----------------------------------------------------------------------------
def parse_leading_int(value: Any) -> int | None:
    """Parse the integer prefix of the textual form of a value.

    Mirrors the lenient parsing browsers apply to form values: ``"7"`` and
    ``"7abc"`` both give 7, while ``"abc"``, ``None`` and booleans give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = LEADING_INT_PATTERN.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


# -----------------------------------------------------------------------------
def coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    return default


# -----------------------------------------------------------------------------
def coerce_int(
    value: Any, default: int, minimum: int | None = None, maximum: int | None = None
) -> int:
    candidate: int
    if isinstance(value, bool):
        candidate = int(value)
    else:
        try:
            candidate = int(value)
        except (TypeError, ValueError):
            candidate = default
    if minimum is not None and candidate < minimum:
        candidate = minimum
    if maximum is not None and candidate > maximum:
        candidate = maximum
    return candidate


# -----------------------------------------------------------------------------
def coerce_str(value: Any, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or default
    if value is None:
        return default
    return str(value).strip() or default


# -----------------------------------------------------------------------------
def coerce_str_or_none(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if value is None:
        return None
    return str(value).strip() or None


# -----------------------------------------------------------------------------
def coerce_row_limit(value: Any, default: int, maximum: int) -> int:
    candidate = parse_leading_int(value)
    if candidate is None or candidate < 1:
        return default
    return min(candidate, maximum)


# -----------------------------------------------------------------------------
def coerce_since_date(
    value: Any, default_days: int, today: date | None = None
) -> str:
    reference = today or datetime.now(timezone.utc).date()
    fallback = (reference - timedelta(days=default_days)).isoformat()
    if not isinstance(value, str) or not DATE_ONLY_PATTERN.match(value.strip()):
        return fallback
    candidate = value.strip()
    try:
        date.fromisoformat(candidate)
    except ValueError:
        return fallback
    return candidate


__all__ = [
    "coerce_bool",
    "coerce_int",
    "coerce_row_limit",
    "coerce_since_date",
    "coerce_str",
    "coerce_str_or_none",
    "parse_leading_int",
]
