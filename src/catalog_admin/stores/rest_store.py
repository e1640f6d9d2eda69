"""Remote catalog store backed by a PostgREST-compatible REST API."""

import logging
import time
from typing import Any

import httpx

from catalog_admin.errors import StoreError
from catalog_admin.observability.metrics import record_store_latency
from catalog_admin.stores.base_store import CatalogStore

logger = logging.getLogger(__name__)


class RestCatalogStore(CatalogStore):
    """HTTP client for the catalog tables exposed over PostgREST.

    Filters are sent as ``column=eq.value`` query parameters and ordering as
    ``order=column.asc``. Writes ask for the persisted row back with
    ``Prefer: return=representation``.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0) -> None:
        """Initialize the REST catalog store.

        Args:
            base_url: Project URL (e.g., "https://project.example.com")
            api_key: API key sent as ``apikey`` and bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self, write: bool = False) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        write: bool = False,
    ) -> Any:
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    self._url(table),
                    params=params,
                    json=json,
                    headers=self._headers(write=write),
                )
                response.raise_for_status()
                if not response.content:
                    return []
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {table} failed with status {e.response.status_code}: {e}")
            raise StoreError(
                f"{method} {table} failed", status_code=e.response.status_code, cause=e
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{method} {table} failed: {e}")
            raise StoreError(f"{method} {table} failed", cause=e) from e
        finally:
            record_store_latency(table, method, time.perf_counter() - started)

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"

        rows = await self._request("GET", table, params=params)
        return list(rows)

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("POST", table, json=[row], write=True)
        if not rows:
            raise StoreError(f"POST {table} returned no row")
        return rows[0]

    async def update(
        self, table: str, row_id: str, values: dict[str, Any]
    ) -> dict[str, Any] | None:
        rows = await self._request(
            "PATCH", table, params={"id": f"eq.{row_id}"}, json=values, write=True
        )
        return rows[0] if rows else None

    async def delete(self, table: str, row_id: str) -> bool:
        rows = await self._request("DELETE", table, params={"id": f"eq.{row_id}"}, write=True)
        return bool(rows)
