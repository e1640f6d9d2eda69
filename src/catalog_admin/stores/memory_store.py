"""In-process catalog and asset stores.

Used for local development and tests. Both stores record every call so that
callers can assert which remote operations happened. Seed data is injected by
the caller; nothing is pre-populated.
"""

import copy
import itertools
from typing import Any

from catalog_admin.errors import StoreError
from catalog_admin.stores.base_store import AssetStore, CatalogStore


class InMemoryCatalogStore(CatalogStore):
    """Catalog store holding rows in dictionaries keyed by table."""

    def __init__(self, seed: dict[str, list[dict[str, Any]]] | None = None) -> None:
        """Initialize the store.

        Args:
            seed: Optional initial rows per table; rows without an ``id`` get one
        """
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_next: StoreError | None = None
        self._ids = itertools.count(1)

        for table, rows in (seed or {}).items():
            for row in rows:
                self._store_row(table, dict(row))

    def _store_row(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = self.tables.setdefault(table, [])
        if row.get("id") in (None, ""):
            taken = {r["id"] for r in rows}
            row["id"] = next(i for i in map(str, self._ids) if i not in taken)
        else:
            row["id"] = str(row["id"])
        rows.append(row)
        return row

    def _record(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        self._record("select", table)
        rows = [
            copy.deepcopy(row)
            for row in self.tables.get(table, [])
            if all(str(row.get(col)) == str(val) for col, val in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by)), reverse=descending)
        return rows

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        self._record("insert", table)
        stored = self._store_row(table, copy.deepcopy(row))
        return copy.deepcopy(stored)

    async def update(
        self, table: str, row_id: str, values: dict[str, Any]
    ) -> dict[str, Any] | None:
        self._record("update", table)
        for row in self.tables.get(table, []):
            if row["id"] == str(row_id):
                row.update(copy.deepcopy(values))
                row["id"] = str(row_id)
                return copy.deepcopy(row)
        return None

    async def delete(self, table: str, row_id: str) -> bool:
        self._record("delete", table)
        rows = self.tables.get(table, [])
        for index, row in enumerate(rows):
            if row["id"] == str(row_id):
                del rows[index]
                return True
        return False


class InMemoryAssetStore(AssetStore):
    """Asset store keeping uploaded objects in memory."""

    def __init__(self, base_url: str = "https://assets.local") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.uploads: list[tuple[str, str]] = []
        self.fail_next: StoreError | None = None

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        self.uploads.append((bucket, path))
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error
        if (bucket, path) in self.objects:
            raise StoreError(f"Asset {bucket}/{path} already exists", status_code=409)
        self.objects[(bucket, path)] = (content, content_type)
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/{bucket}/{path}"
