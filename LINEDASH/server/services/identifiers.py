from __future__ import annotations

import re
from dataclasses import dataclass

from LINEDASH.server.utils.constants import IDENTIFIER_PART_PATTERN
from LINEDASH.server.utils.exceptions import InvalidIdentifier

IDENTIFIER_PART_REGEX = re.compile(IDENTIFIER_PART_PATTERN)


###############################################################################
@dataclass(frozen=True)
class TableIdentifier:
    parts: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.parts:
            raise InvalidIdentifier("Table name is required")
        for part in self.parts:
            if not isinstance(part, str) or not IDENTIFIER_PART_REGEX.fullmatch(part):
                raise InvalidIdentifier()

    # -------------------------------------------------------------------------
    @property
    def full_name(self) -> str:
        return ".".join(self.parts)

    # -------------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self.parts[-1]

    # -------------------------------------------------------------------------
    @property
    def schema(self) -> str | None:
        return ".".join(self.parts[:-1]) or None

    # -------------------------------------------------------------------------
    def __str__(self) -> str:
        return self.full_name


# -----------------------------------------------------------------------------
def sanitize_table_identifier(identifier: str) -> TableIdentifier:
    """Split a dotted table name into validated parts.

    Only guarantees that every part is made of ``[A-Za-z0-9_]``; rendering the
    parts as quoted SQL identifiers is left to ``quote_table_identifier``.
    """
    if not isinstance(identifier, str):
        raise InvalidIdentifier("Table name is required")
    parts = tuple(part.strip() for part in identifier.split(".") if part.strip())
    return TableIdentifier(parts)
