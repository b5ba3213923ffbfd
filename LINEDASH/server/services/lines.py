from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import pandas as pd
from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.engine import Engine

from LINEDASH.server.database.utils import quote_table_identifier
from LINEDASH.server.services.identifiers import sanitize_table_identifier
from LINEDASH.server.utils.constants import COMPLETED_STATUS
from LINEDASH.server.utils.exceptions import LineNotFound
from LINEDASH.server.utils.logger import logger


###############################################################################
@dataclass
class LineSummary:
    total_count: int
    active_count: int
    completed_count: int
    pending_jira_count: int
    lot_count: int
    latest_updated_at: str | None


###############################################################################
@dataclass
class LineTrendPoint:
    date: str
    active_count: int
    completed_count: int


###############################################################################
@dataclass
class LineRecentItem:
    id: int
    lot_id: str | None
    status: str | None
    created_at: str


###############################################################################
@dataclass
class LineDashboard:
    line_id: str
    summary: LineSummary
    trend: list[LineTrendPoint] = field(default_factory=list)
    recent: list[LineRecentItem] = field(default_factory=list)


# -----------------------------------------------------------------------------
def to_iso_datetime(value: Any) -> str | None:
    if value is None or value == "":
        return None
    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(timestamp):
        return None
    return timestamp.isoformat()


# -----------------------------------------------------------------------------
def to_count(value: Any) -> int:
    if value is None or pd.isna(value):
        return 0
    return int(value)


###############################################################################
class LineDashboardService:
    def __init__(
        self,
        engine: Engine,
        table_name: str,
        trend_lookback_days: int,
        recent_limit: int,
    ) -> None:
        self.engine = engine
        self.table_sql = quote_table_identifier(
            sanitize_table_identifier(table_name), engine.dialect
        )
        self.trend_lookback_days = trend_lookback_days
        self.recent_limit = recent_limit

    # -------------------------------------------------------------------------
    def get_distinct_line_ids(self) -> list[str]:
        statement = text(
            f"SELECT DISTINCT line_id FROM {self.table_sql} "
            "WHERE line_id IS NOT NULL AND line_id <> '' ORDER BY line_id"
        )
        with self.engine.connect() as conn:
            values = conn.execute(statement).scalars().all()
        return [str(value) for value in values if value not in (None, "")]

    # -------------------------------------------------------------------------
    def get_summary(self, line_id: str) -> LineSummary | None:
        statement = text(
            f"""
            SELECT
                COUNT(*) AS total_count,
                SUM(CASE WHEN status = :completed THEN 1 ELSE 0 END) AS completed_count,
                SUM(CASE WHEN status <> :completed THEN 1 ELSE 0 END) AS active_count,
                SUM(CASE WHEN send_jira = 0 AND needtosend = 1 THEN 1 ELSE 0 END)
                    AS pending_jira_count,
                COUNT(DISTINCT lot_id) AS lot_count,
                MAX(updated_at) AS latest_updated_at
            FROM {self.table_sql}
            WHERE line_id = :line_id
            """
        )
        with self.engine.connect() as conn:
            row = conn.execute(
                statement, {"line_id": line_id, "completed": COMPLETED_STATUS}
            ).mappings().first()

        if row is None or to_count(row["total_count"]) == 0:
            return None
        return LineSummary(
            total_count=to_count(row["total_count"]),
            active_count=to_count(row["active_count"]),
            completed_count=to_count(row["completed_count"]),
            pending_jira_count=to_count(row["pending_jira_count"]),
            lot_count=to_count(row["lot_count"]),
            latest_updated_at=to_iso_datetime(row["latest_updated_at"]),
        )

    # -------------------------------------------------------------------------
    def get_trend(self, line_id: str, today: date | None = None) -> list[LineTrendPoint]:
        reference = today or datetime.now(timezone.utc).date()
        cutoff = datetime.combine(
            reference - timedelta(days=self.trend_lookback_days), time.min
        )
        statement = text(
            f"SELECT created_at, status FROM {self.table_sql} "
            "WHERE line_id = :line_id AND created_at IS NOT NULL "
            "AND created_at >= :cutoff"
        ).bindparams(bindparam("cutoff", type_=DateTime()))
        with self.engine.connect() as conn:
            frame = pd.read_sql(
                statement, conn, params={"line_id": line_id, "cutoff": cutoff}
            )
        if frame.empty:
            return []

        # per-day buckets are computed here so the SQL stays dialect neutral
        frame["day"] = pd.to_datetime(frame["created_at"], errors="coerce").dt.date
        frame = frame.dropna(subset=["day"])
        frame["completed"] = frame["status"] == COMPLETED_STATUS
        frame["active"] = frame["status"].notna() & (frame["status"] != COMPLETED_STATUS)
        grouped = (
            frame.groupby("day")[["active", "completed"]].sum().sort_index().reset_index()
        )
        return [
            LineTrendPoint(
                date=day.isoformat(),
                active_count=int(active),
                completed_count=int(completed),
            )
            for day, active, completed in grouped.itertuples(index=False)
        ]

    # -------------------------------------------------------------------------
    def get_recent(self, line_id: str) -> list[LineRecentItem]:
        statement = text(
            f"SELECT id, lot_id, status, created_at FROM {self.table_sql} "
            "WHERE line_id = :line_id ORDER BY created_at DESC LIMIT :limit"
        )
        with self.engine.connect() as conn:
            rows = conn.execute(
                statement, {"line_id": line_id, "limit": self.recent_limit}
            ).mappings().all()
        return [
            LineRecentItem(
                id=int(row["id"]),
                lot_id=str(row["lot_id"]) if row["lot_id"] is not None else None,
                status=row["status"],
                created_at=to_iso_datetime(row["created_at"]) or "",
            )
            for row in rows
        ]

    # -------------------------------------------------------------------------
    def get_line_dashboard(self, line_id: str) -> LineDashboard:
        summary = self.get_summary(line_id)
        if summary is None:
            logger.info("No rows found for line %s", line_id)
            raise LineNotFound(f"Line {line_id} was not found.")
        return LineDashboard(
            line_id=line_id,
            summary=summary,
            trend=self.get_trend(line_id),
            recent=self.get_recent(line_id),
        )
