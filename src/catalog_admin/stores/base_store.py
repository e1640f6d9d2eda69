"""Base classes for the remote catalog store and the asset store.

The catalog core never talks to a backend directly. It consumes these two
collaborator contracts, which concrete stores implement. Store implementations
raise StoreError for every backend failure and leave the mapping to domain
errors to the repository layer.
"""

from abc import ABC, abstractmethod
from typing import Any


class CatalogStore(ABC):
    """Abstract relational read/write store keyed by table and identifier.

    Rows are plain dictionaries using the store's column names. Every write
    returns the full persisted row.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Read rows from a table.

        Args:
            table: Table name
            filters: Column equality filters, combined with AND
            order_by: Column to order by, store order when omitted
            descending: Order descending instead of ascending

        Returns:
            list: Matching rows (empty list if none)

        Raises:
            StoreError: If the store request fails
        """

    @abstractmethod
    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it with its store-assigned identifier.

        Raises:
            StoreError: If the store request fails
        """

    @abstractmethod
    async def update(
        self, table: str, row_id: str, values: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update a row by identifier.

        Returns:
            The updated row, or None if no row has that identifier

        Raises:
            StoreError: If the store request fails
        """

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> bool:
        """Delete a row by identifier.

        Returns:
            bool: True if a row was deleted, False if no row had that identifier

        Raises:
            StoreError: If the store request fails
        """


class AssetStore(ABC):
    """Abstract binary object store namespaced by bucket."""

    @abstractmethod
    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        """Upload binary content and return the stored path.

        Raises:
            StoreError: If the upload fails or the path already exists
        """

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str:
        """Resolve a stored path to a publicly retrievable URL."""
