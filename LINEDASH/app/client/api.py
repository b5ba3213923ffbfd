from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from LINEDASH.app.client.models import (
    TableDataPayload,
    TableOption,
    TablesPayload,
    UpdatePayload,
)
from LINEDASH.app.constants import DEFAULT_API_URL, REQUEST_TIMEOUT
from LINEDASH.app.logger import logger


###############################################################################
class DashboardAPIError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# -----------------------------------------------------------------------------
def extract_error_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("detail", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


###############################################################################
class DashboardAPIClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    # -------------------------------------------------------------------------
    async def __aenter__(self) -> DashboardAPIClient:
        return self

    # -------------------------------------------------------------------------
    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -------------------------------------------------------------------------
    async def _request(
        self, method: str, path: str, fallback_error: str, **kwargs: Any
    ) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise DashboardAPIError(f"{fallback_error}: {exc}") from exc

        if response.is_error:
            message = extract_error_message(response)
            raise DashboardAPIError(
                message or f"{fallback_error} (status {response.status_code})",
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise DashboardAPIError("Received unexpected data from server") from exc

    # -------------------------------------------------------------------------
    @staticmethod
    def _parse(model: type[BaseModel], payload: Any) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Unexpected payload for %s: %s", model.__name__, exc)
            raise DashboardAPIError("Received unexpected data from server") from exc

    # -------------------------------------------------------------------------
    async def fetch_tables(
        self, schema: str | None = None, include_system: bool = False
    ) -> list[TableOption]:
        params: dict[str, str] = {}
        if schema:
            params["schema"] = schema
        if include_system:
            params["includeSystem"] = "1"
        payload = await self._request(
            "GET", "/tables", "Failed to load tables", params=params
        )
        return self._parse(TablesPayload, payload).tables

    # -------------------------------------------------------------------------
    async def fetch_rows(
        self,
        table: str,
        limit: int,
        line_id: str | None = None,
        since: str | None = None,
    ) -> TableDataPayload:
        params: dict[str, str] = {"table": table, "limit": str(limit)}
        if line_id:
            params["lineId"] = line_id
        if since:
            params["since"] = since
        payload = await self._request(
            "GET", "/tables", "Failed to load table rows", params=params
        )
        return self._parse(TableDataPayload, payload)

    # -------------------------------------------------------------------------
    async def update_row(
        self, table: str, record_id: str, updates: dict[str, Any]
    ) -> None:
        body = {"table": table, "id": record_id, "updates": updates}
        payload = await self._request(
            "PATCH", "/tables/update", "Failed to update", json=body
        )
        if not self._parse(UpdatePayload, payload).success:
            raise DashboardAPIError("Failed to update")
