"""
Tests for the line dashboard service and the /lines endpoints.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from LINEDASH.server.services.lines import LineDashboardService, to_iso_datetime
from LINEDASH.server.utils.exceptions import LineNotFound


def build_service(database, lookback: int = 90, recent: int = 10) -> LineDashboardService:
    return LineDashboardService(
        database.engine,
        table_name="drone_sop_v3",
        trend_lookback_days=lookback,
        recent_limit=recent,
    )


class TestLineDashboardService:
    def test_distinct_line_ids(self, seeded_database, insert_rows, record_factory):
        insert_rows([record_factory(line_id=""), record_factory(line_id=None)])
        service = build_service(seeded_database)
        assert service.get_distinct_line_ids() == ["LINE_A", "LINE_B"]

    def test_summary_counts(self, seeded_database):
        summary = build_service(seeded_database).get_summary("LINE_A")
        assert summary is not None
        assert summary.total_count == 4
        assert summary.completed_count == 1
        assert summary.active_count == 3
        assert summary.pending_jira_count == 2
        assert summary.lot_count == 3
        assert summary.latest_updated_at is not None

    def test_summary_of_unknown_line_is_none(self, seeded_database):
        assert build_service(seeded_database).get_summary("LINE_Z") is None

    def test_trend_buckets_by_day(self, database, insert_rows, record_factory):
        today = datetime.now(timezone.utc).date()
        day_one = datetime.combine(today - timedelta(days=2), datetime.min.time())
        day_two = datetime.combine(today - timedelta(days=1), datetime.min.time())
        insert_rows(
            [
                record_factory(created_at=day_one + timedelta(hours=1), status="Running"),
                record_factory(created_at=day_one + timedelta(hours=2), status="Completed"),
                record_factory(created_at=day_two + timedelta(hours=3), status="Running"),
                record_factory(created_at=day_two + timedelta(hours=4), status="Running"),
                record_factory(
                    created_at=day_one - timedelta(days=200), status="Running"
                ),
            ]
        )
        trend = build_service(database).get_trend("LINE_A", today=today)
        assert [(point.date, point.active_count, point.completed_count) for point in trend] == [
            ((today - timedelta(days=2)).isoformat(), 1, 1),
            ((today - timedelta(days=1)).isoformat(), 2, 0),
        ]

    def test_recent_items_are_newest_first(self, database, insert_rows, record_factory):
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        insert_rows(
            [
                record_factory(lot_id=f"LOT-{index}", created_at=now - timedelta(hours=index))
                for index in range(5)
            ]
        )
        recent = build_service(database, recent=3).get_recent("LINE_A")
        assert [item.lot_id for item in recent] == ["LOT-0", "LOT-1", "LOT-2"]
        assert all(item.created_at for item in recent)

    def test_integer_lot_ids_are_reported_as_text(self, database):
        with database.engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TABLE numbered_lots (id INTEGER PRIMARY KEY, line_id TEXT, "
                    "lot_id INTEGER, status TEXT, created_at TIMESTAMP)"
                )
            )
            conn.execute(
                text(
                    "INSERT INTO numbered_lots (id, line_id, lot_id, status, created_at) "
                    "VALUES (1, 'LINE_A', 7001, 'Running', '2024-05-01 08:00:00'), "
                    "(2, 'LINE_A', NULL, 'Running', '2024-05-01 07:00:00')"
                )
            )
        service = LineDashboardService(
            database.engine,
            table_name="numbered_lots",
            trend_lookback_days=90,
            recent_limit=10,
        )
        assert [item.lot_id for item in service.get_recent("LINE_A")] == ["7001", None]

    def test_to_iso_datetime(self):
        assert to_iso_datetime(None) is None
        assert to_iso_datetime("") is None
        assert to_iso_datetime("2024-05-01 10:20:30") == "2024-05-01T10:20:30"
        assert to_iso_datetime(date(2024, 5, 1)) == "2024-05-01T00:00:00"


class TestLineRoutes:
    def test_list_lines(self, client: TestClient):
        response = client.get("/lines")
        assert response.status_code == 200
        assert response.json() == {"lines": ["LINE_A", "LINE_B"]}

    def test_dashboard_payload(self, client: TestClient):
        response = client.get("/lines/LINE_A/dashboard")
        assert response.status_code == 200

        data = response.json()
        assert data["lineId"] == "LINE_A"
        assert set(data["summary"]) == {
            "totalCount",
            "activeCount",
            "completedCount",
            "pendingJiraCount",
            "lotCount",
            "latestUpdatedAt",
        }
        assert data["summary"]["totalCount"] == 4
        assert sum(point["activeCount"] + point["completedCount"] for point in data["trend"]) == 4
        assert len(data["recent"]) == 4
        assert set(data["recent"][0]) == {"id", "lotId", "status", "createdAt"}

    def test_unknown_line_is_not_found(self, client: TestClient):
        response = client.get("/lines/LINE_Z/dashboard")
        assert response.status_code == 404
        assert response.json()["detail"] == "Line LINE_Z was not found."


class TestLineNotFound:
    def test_service_raises_for_unknown_line(self, seeded_database):
        with pytest.raises(LineNotFound) as excinfo:
            build_service(seeded_database).get_line_dashboard("LINE_Z")
        assert excinfo.value.status_code == 404
