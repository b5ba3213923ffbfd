from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


###############################################################################
class CamelPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


###############################################################################
class TableOption(CamelPayload):
    schema_name: str | None = Field(default=None, alias="schema")
    name: str
    full_name: str


###############################################################################
class TablesPayload(CamelPayload):
    tables: list[TableOption] = Field(default_factory=list)


###############################################################################
class TableDataPayload(CamelPayload):
    table: str
    since: str | None = None
    limit: int
    row_count: int
    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    line_id: str | None = None


###############################################################################
class UpdatePayload(CamelPayload):
    success: bool
