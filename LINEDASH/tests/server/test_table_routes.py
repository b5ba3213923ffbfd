"""
Endpoint tests for /tables and /tables/update.
"""

from __future__ import annotations

from fastapi.testclient import TestClient


class TestTableList:
    def test_get_tables_without_table_lists_tables(self, client: TestClient):
        response = client.get("/tables")
        assert response.status_code == 200

        tables = response.json()["tables"]
        names = {table["name"] for table in tables}
        assert {"drone_sop_v3", "widgets", "audit_events"} <= names
        for table in tables:
            assert set(table) == {"schema", "name", "fullName"}
            expected = f"{table['schema']}.{table['name']}" if table["schema"] else table["name"]
            assert table["fullName"] == expected

    def test_unknown_schema_returns_empty_list(self, client: TestClient):
        response = client.get("/tables", params={"schema": "nope"})
        assert response.status_code == 200
        assert response.json() == {"tables": []}


class TestTableRows:
    def test_rows_response_shape(self, client: TestClient):
        response = client.get("/tables", params={"table": "drone_sop_v3", "lineId": "LINE_A"})
        assert response.status_code == 200

        data = response.json()
        assert set(data) == {"table", "since", "limit", "rowCount", "columns", "rows", "lineId"}
        assert data["table"] == "drone_sop_v3"
        assert data["limit"] == 200
        assert data["lineId"] == "LINE_A"
        assert data["rowCount"] == len(data["rows"]) == 3
        assert data["columns"] == list(data["rows"][0])

    def test_limit_is_echoed_and_row_count_is_actual(self, client: TestClient):
        response = client.get("/tables", params={"table": "main.widgets", "limit": "50"})
        assert response.status_code == 200

        data = response.json()
        assert data["table"] == "main.widgets"
        assert data["limit"] == 50
        assert data["rowCount"] == 10
        assert data["columns"] == ["id", "label", "weight"]
        assert data["since"] is None

    def test_limit_is_capped(self, client: TestClient):
        response = client.get("/tables", params={"table": "widgets", "limit": "5000"})
        assert response.json()["limit"] == 1000

    def test_invalid_limit_uses_default(self, client: TestClient):
        response = client.get("/tables", params={"table": "widgets", "limit": "many"})
        assert response.json()["limit"] == 200

    def test_explicit_since_is_echoed(self, client: TestClient):
        response = client.get("/tables", params={"table": "drone_sop_v3", "since": "2000-01-01"})
        data = response.json()
        assert data["since"] == "2000-01-01"
        # the ten-day-old row is back inside the window
        assert data["rowCount"] == 5

    def test_missing_line_column_reports_null_line(self, client: TestClient):
        response = client.get("/tables", params={"table": "audit_events", "lineId": "LINE_A"})
        assert response.status_code == 200
        data = response.json()
        assert data["lineId"] is None
        assert data["since"] is not None
        assert data["rowCount"] == 1

    def test_invalid_identifier_is_rejected(self, client: TestClient):
        response = client.get("/tables", params={"table": "widgets;drop"})
        assert response.status_code == 400
        assert "alphanumeric" in response.json()["detail"]

    def test_unknown_table_is_a_server_error(self, client: TestClient):
        response = client.get("/tables", params={"table": "missing_table"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to load table data"


class TestRowUpdate:
    def fetch_row(self, client: TestClient, row_id: int) -> dict:
        data = client.get(
            "/tables", params={"table": "drone_sop_v3", "since": "2000-01-01"}
        ).json()
        return next(row for row in data["rows"] if row["id"] == row_id)

    def test_comment_round_trip(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={"table": "drone_sop_v3", "id": 1, "updates": {"comment": "x"}},
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert self.fetch_row(client, 1)["comment"] == "x"

    def test_flag_string_is_stored_as_integer(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={"table": "main.widgets", "id": "7", "updates": {"needtosend": "1"}},
        )
        # widgets has no needtosend column
        assert response.status_code == 500

        response = client.patch(
            "/tables/update",
            json={"table": "main.drone_sop_v3", "id": "1", "updates": {"needtosend": "1"}},
        )
        assert response.status_code == 200
        assert self.fetch_row(client, 1)["needtosend"] == 1

    def test_invalid_flag_is_rejected(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={"table": "drone_sop_v3", "id": "1", "updates": {"needtosend": "2"}},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Field 'needtosend' must be 0 or 1."

    def test_idempotent_update_succeeds(self, client: TestClient):
        before = self.fetch_row(client, 2)
        assert before["needtosend"] == 1
        response = client.patch(
            "/tables/update",
            json={"table": "drone_sop_v3", "id": 2, "updates": {"needtosend": 1}},
        )
        assert response.status_code == 200
        assert self.fetch_row(client, 2) == before

    def test_missing_table_is_rejected_first(self, client: TestClient):
        response = client.patch("/tables/update", json={"id": "oops", "updates": 3})
        assert response.status_code == 400
        assert response.json()["detail"] == "Parameter 'table' is required."

    def test_invalid_json_body_is_missing_table(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Parameter 'table' is required."

    def test_invalid_comment_type(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={"table": "drone_sop_v3", "id": 1, "updates": {"comment": {"a": 1}}},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Field 'comment' must be a string or null."

    def test_no_fields_provided(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={"table": "drone_sop_v3", "id": 1, "updates": {"status": "Done"}},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "No valid fields provided for update."

    def test_unknown_row_is_not_found(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={"table": "drone_sop_v3", "id": 4242, "updates": {"comment": "x"}},
        )
        assert response.status_code == 404

    def test_oversized_id_is_rejected(self, client: TestClient):
        response = client.patch(
            "/tables/update",
            json={
                "table": "drone_sop_v3",
                "id": "99999999999999999999999",
                "updates": {"comment": "x"},
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Parameter 'id' must be a number."
