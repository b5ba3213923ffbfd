"""
Shared fixtures for the LINEDASH test suite.
Server tests run against a throwaway SQLite file, client tests against
in-process fakes driven by a manual clock.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pandas as pd
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import text

from LINEDASH.app.client.scheduler import ManualScheduler
from LINEDASH.server.app import create_app
from LINEDASH.server.configurations import ServerSettings, build_server_settings
from LINEDASH.server.database.database import LINEDASHDatabase
from LINEDASH.server.utils.constants import PRIMARY_TABLE


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def make_record(**overrides: Any) -> dict[str, Any]:
    created_at = utc_now() - timedelta(hours=1)
    record = {
        "line_id": "LINE_A",
        "lot_id": "LOT-001",
        "status": "Running",
        "main_step": "S100",
        "metro_steps": "S200,S300",
        "metro_current_step": "S200",
        "metro_end_step": "S500",
        "custom_end_step": None,
        "inform_step": None,
        "comment": "",
        "needtosend": 0,
        "send_jira": 0,
        "created_at": created_at,
        "updated_at": created_at,
    }
    record.update(overrides)
    return record


def insert_records(database: LINEDASHDatabase, records: list[dict[str, Any]]) -> None:
    database.append_into_database(pd.DataFrame.from_records(records), PRIMARY_TABLE)


@pytest.fixture
def settings(tmp_path) -> ServerSettings:
    return build_server_settings(
        {
            "database": {
                "embedded_database": True,
                "sqlite_path": str(tmp_path / "linedash.db"),
            }
        },
        environment={},
    )


@pytest.fixture
def database(settings: ServerSettings) -> Iterator[LINEDASHDatabase]:
    handle = LINEDASHDatabase(settings.database)
    yield handle
    handle.close()


@pytest.fixture
def seeded_database(database: LINEDASHDatabase) -> LINEDASHDatabase:
    """Primary table with two lines plus two tables lacking the filter columns."""
    now = utc_now()
    insert_records(
        database,
        [
            make_record(lot_id="LOT-001", status="Running"),
            make_record(lot_id="LOT-001", status="Completed", needtosend=1),
            make_record(lot_id="LOT-002", status="Running", needtosend=1),
            make_record(
                lot_id="LOT-003",
                created_at=now - timedelta(days=10),
                updated_at=now - timedelta(days=10),
            ),
            make_record(line_id="LINE_B", lot_id="LOT-900", status="Completed"),
        ],
    )
    with database.engine.begin() as conn:
        conn.execute(
            text("CREATE TABLE widgets (id INTEGER PRIMARY KEY, label TEXT, weight INTEGER)")
        )
        for index in range(1, 11):
            conn.execute(
                text("INSERT INTO widgets (id, label, weight) VALUES (:id, :label, :weight)"),
                {"id": index, "label": f"widget-{index}", "weight": index * 10},
            )
        conn.execute(
            text(
                "CREATE TABLE audit_events (id INTEGER PRIMARY KEY, "
                "created_at TIMESTAMP, note TEXT, comment TEXT, needtosend INTEGER)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO audit_events (id, created_at, note, comment, needtosend) "
                "VALUES (1, :created_at, 'recent', NULL, 0)"
            ),
            {"created_at": (now - timedelta(hours=2)).strftime("%Y-%m-%d %H:%M:%S")},
        )
    return database


@pytest.fixture
def app(settings: ServerSettings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI, seeded_database: LINEDASHDatabase) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def insert_rows(database: LINEDASHDatabase):
    def insert(records: list[dict[str, Any]]) -> None:
        insert_records(database, records)

    return insert
