from __future__ import annotations

from LINEDASH.server.schemas.tables import CamelModel


###############################################################################
class LineListResponse(CamelModel):
    lines: list[str]


###############################################################################
class LineSummaryResponse(CamelModel):
    total_count: int
    active_count: int
    completed_count: int
    pending_jira_count: int
    lot_count: int
    latest_updated_at: str | None = None


###############################################################################
class LineTrendPointResponse(CamelModel):
    date: str
    active_count: int
    completed_count: int


###############################################################################
class LineRecentItemResponse(CamelModel):
    id: int
    lot_id: str | None = None
    status: str | None = None
    created_at: str


###############################################################################
class LineDashboardResponse(CamelModel):
    line_id: str
    summary: LineSummaryResponse
    trend: list[LineTrendPointResponse]
    recent: list[LineRecentItemResponse]
