from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


###############################################################################
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


###############################################################################
class TableOptionResponse(CamelModel):
    schema_name: str | None = Field(default=None, alias="schema")
    name: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)


###############################################################################
class TableListResponse(CamelModel):
    tables: list[TableOptionResponse]


###############################################################################
class TableRowsResponse(CamelModel):
    table: str = Field(..., min_length=1)
    since: str | None = None
    limit: int = Field(..., ge=1)
    row_count: int = Field(..., ge=0)
    columns: list[str]
    rows: list[dict[str, Any]]
    line_id: str | None = None


###############################################################################
class RowUpdateResponse(CamelModel):
    success: bool = True
