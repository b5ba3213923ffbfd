from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError

from LINEDASH.server.configurations import ServerSettings
from LINEDASH.server.database.database import LINEDASHDatabase
from LINEDASH.server.dependencies import get_database, get_settings
from LINEDASH.server.schemas.lines import (
    LineDashboardResponse,
    LineListResponse,
    LineRecentItemResponse,
    LineSummaryResponse,
    LineTrendPointResponse,
)
from LINEDASH.server.services.lines import LineDashboardService
from LINEDASH.server.utils.exceptions import LineNotFound
from LINEDASH.server.utils.logger import logger


router = APIRouter(prefix="/lines", tags=["lines"])


# -----------------------------------------------------------------------------
def get_line_service(
    database: LINEDASHDatabase = Depends(get_database),
    settings: ServerSettings = Depends(get_settings),
) -> LineDashboardService:
    dashboard = settings.dashboard
    return LineDashboardService(
        database.engine,
        table_name=dashboard.primary_table,
        trend_lookback_days=dashboard.trend_lookback_days,
        recent_limit=dashboard.recent_limit,
    )


###############################################################################
@router.get(
    "",
    response_model=LineListResponse,
    status_code=status.HTTP_200_OK,
)
def list_lines(
    service: LineDashboardService = Depends(get_line_service),
) -> LineListResponse:
    try:
        lines = service.get_distinct_line_ids()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load line list")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load line list",
        ) from exc
    return LineListResponse(lines=lines)


###############################################################################
@router.get(
    "/{line_id}/dashboard",
    response_model=LineDashboardResponse,
    status_code=status.HTTP_200_OK,
)
def get_line_dashboard(
    line_id: str = Path(..., min_length=1),
    service: LineDashboardService = Depends(get_line_service),
) -> LineDashboardResponse:
    try:
        dashboard = service.get_line_dashboard(line_id)
    except LineNotFound as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to load line dashboard for %s", line_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load line dashboard",
        ) from exc

    summary = dashboard.summary
    return LineDashboardResponse(
        line_id=dashboard.line_id,
        summary=LineSummaryResponse(
            total_count=summary.total_count,
            active_count=summary.active_count,
            completed_count=summary.completed_count,
            pending_jira_count=summary.pending_jira_count,
            lot_count=summary.lot_count,
            latest_updated_at=summary.latest_updated_at,
        ),
        trend=[
            LineTrendPointResponse(
                date=point.date,
                active_count=point.active_count,
                completed_count=point.completed_count,
            )
            for point in dashboard.trend
        ],
        recent=[
            LineRecentItemResponse(
                id=item.id,
                lot_id=item.lot_id,
                status=item.status,
                created_at=item.created_at,
            )
            for item in dashboard.recent
        ],
    )
