"""Repositories for catalog entities.

Each repository is a typed CRUD facade over one table of the remote catalog
store. Referential rules are checked before any write is sent. Store failures
surface as RemoteError (ConflictError for HTTP 409) with the original fault
attached; nothing is rolled back locally because no local state is kept here.
"""

import logging
from collections.abc import Awaitable, Sequence
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast

from catalog_admin.errors import (
    ConflictError,
    MissingCategoryError,
    NotFoundError,
    RemoteError,
    StoreError,
    ValidationError,
)
from catalog_admin.models.catalog_models import (
    DEFAULT_RATING,
    CatalogEntity,
    Category,
    EntityType,
    MenuItem,
    Offer,
    Restaurant,
)
from catalog_admin.models.form_models import (
    CategoryDraft,
    Draft,
    MenuItemDraft,
    OfferDraft,
)
from catalog_admin.observability import traced
from catalog_admin.observability.metrics import record_write_failure, record_write_success
from catalog_admin.stores.base_store import CatalogStore

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=CatalogEntity)
T = TypeVar("T")

WRITE_OPERATIONS = frozenset({"create", "update", "delete"})


def _now() -> str:
    return datetime.now(UTC).isoformat()


class EntityRepository(Generic[E]):
    """Base repository for one catalog entity type.

    Subclasses set ``entity_type``, ``model`` and the default ordering, and
    extend the write hooks with their referential rules.
    """

    entity_type: EntityType
    model: type[E]
    order_by: str | None = None
    descending: bool = False

    def __init__(self, store: CatalogStore) -> None:
        """Initialize repository.

        Args:
            store: Remote catalog store
        """
        self.store = store

    @property
    def table(self) -> str:
        return self.entity_type.value

    async def _remote(self, operation: str, call: Awaitable[T]) -> T:
        """Await a store call, mapping store failures to domain errors."""
        try:
            return await call
        except StoreError as e:
            logger.error(f"Failed to {operation} {self.entity_type.label}: {e}")
            if operation in WRITE_OPERATIONS:
                record_write_failure(self.table, operation, type(e).__name__)
            if e.status_code == 409:
                raise ConflictError() from e
            raise RemoteError(f"Failed to {operation} {self.entity_type.label}", cause=e) from e

    async def list_all(self, filters: dict[str, Any] | None = None) -> list[E]:
        """List entities in the repository's default order.

        Args:
            filters: Optional column equality filters

        Returns:
            list: Entities (empty list if none found)

        Raises:
            RemoteError: If the store request fails
        """
        rows = await self._remote(
            "list",
            self.store.select(
                self.table, filters=filters, order_by=self.order_by, descending=self.descending
            ),
        )
        return [self.model.from_row(row) for row in rows]  # type: ignore[attr-defined]

    async def get(self, entity_id: str) -> E | None:
        """Retrieve one entity by identifier, None if it does not exist."""
        rows = await self._remote("get", self.store.select(self.table, filters={"id": entity_id}))
        if not rows:
            return None
        return self.model.from_row(rows[0])  # type: ignore[attr-defined]

    async def _prepare_create(self, draft: Draft) -> dict[str, Any]:
        return draft.to_row()

    async def _prepare_update(self, entity_id: str, draft: Draft) -> dict[str, Any]:
        return draft.to_row()

    def _check_draft(self, draft: Draft) -> None:
        if draft.entity_type is not self.entity_type:
            raise TypeError(
                f"{type(self).__name__} cannot store a {draft.entity_type.label} draft"
            )

    @traced("catalog.create")
    async def create(self, draft: Draft) -> E:
        """Create an entity from a validated draft.

        Args:
            draft: Validated payload

        Returns:
            The persisted entity with its store-assigned identifier

        Raises:
            ValidationError, MissingCategoryError, NotFoundError: Referential rule failed
            ConflictError: The store rejected a duplicate
            RemoteError: The store request failed
        """
        self._check_draft(draft)
        row = await self._prepare_create(draft)
        stored = await self._remote("create", self.store.insert(self.table, row))
        entity = self.model.from_row(stored)  # type: ignore[attr-defined]

        record_write_success(self.table, "create")
        logger.info(f"Created {self.entity_type.label} {entity.id}")
        return entity

    @traced("catalog.update")
    async def update(self, entity_id: str, draft: Draft) -> E:
        """Replace an entity's fields with a validated draft.

        Concurrent updates are last-write-wins; no version check is made.

        Raises:
            NotFoundError: No entity has that identifier
            ConflictError: The store rejected a duplicate
            RemoteError: The store request failed
        """
        self._check_draft(draft)
        values = await self._prepare_update(entity_id, draft)
        stored = await self._remote("update", self.store.update(self.table, entity_id, values))
        if stored is None:
            record_write_failure(self.table, "update", NotFoundError.__name__)
            raise NotFoundError(self.entity_type.label, entity_id)
        entity = self.model.from_row(stored)  # type: ignore[attr-defined]

        record_write_success(self.table, "update")
        logger.info(f"Updated {self.entity_type.label} {entity_id}")
        return entity

    @traced("catalog.delete")
    async def delete(self, entity_id: str) -> None:
        """Delete an entity.

        Raises:
            NotFoundError: No entity has that identifier
            RemoteError: The store request failed
        """
        deleted = await self._remote("delete", self.store.delete(self.table, entity_id))
        if not deleted:
            record_write_failure(self.table, "delete", NotFoundError.__name__)
            raise NotFoundError(self.entity_type.label, entity_id)

        record_write_success(self.table, "delete")
        logger.info(f"Deleted {self.entity_type.label} {entity_id}")


class RestaurantRepository(EntityRepository[Restaurant]):
    """Restaurants, newest first."""

    entity_type = EntityType.RESTAURANT
    model = Restaurant
    order_by = "created_at"
    descending = True

    @staticmethod
    def _with_rating(row: dict[str, Any]) -> dict[str, Any]:
        if row.get("rating") is None:
            row["rating"] = float(DEFAULT_RATING)
        return row

    async def _prepare_create(self, draft: Draft) -> dict[str, Any]:
        row = self._with_rating(draft.to_row())
        row["created_at"] = row["updated_at"] = _now()
        return row

    async def _prepare_update(self, entity_id: str, draft: Draft) -> dict[str, Any]:
        row = self._with_rating(draft.to_row())
        row["updated_at"] = _now()
        return row


class CategoryRepository(EntityRepository[Category]):
    """Menu categories, ordered by display order."""

    entity_type = EntityType.CATEGORY
    model = Category
    order_by = "display_order"

    async def list_for_restaurant(self, restaurant_id: str) -> list[Category]:
        return await self.list_all({"restaurant_id": restaurant_id})

    async def _prepare_create(self, draft: Draft) -> dict[str, Any]:
        draft = cast(CategoryDraft, draft)
        if not draft.restaurant_id:
            raise ValidationError("Category must belong to a restaurant")

        rows = await self._remote(
            "create",
            self.store.select(EntityType.RESTAURANT.value, filters={"id": draft.restaurant_id}),
        )
        if not rows:
            raise NotFoundError(EntityType.RESTAURANT.label, draft.restaurant_id)
        return draft.to_row()

    async def _prepare_update(self, entity_id: str, draft: Draft) -> dict[str, Any]:
        draft = cast(CategoryDraft, draft)
        row = draft.to_row()
        # A category never moves between restaurants through an edit
        if not draft.restaurant_id:
            row.pop("restaurant_id", None)
        return row


class MenuItemRepository(EntityRepository[MenuItem]):
    """Menu items, in store order.

    Creating an item needs the categories of its restaurant. Callers holding
    the category collection pass it in so the check needs no remote call.
    """

    entity_type = EntityType.MENU_ITEM
    model = MenuItem

    def __init__(self, store: CatalogStore, category_repository: CategoryRepository) -> None:
        super().__init__(store)
        self.category_repository = category_repository

    async def list_for_restaurant(self, restaurant_id: str) -> list[MenuItem]:
        return await self.list_all({"restaurant_id": restaurant_id})

    @staticmethod
    def _resolve_category(draft: MenuItemDraft, categories: Sequence[Category]) -> str | None:
        """Check the item's category against the restaurant's categories.

        Returns:
            The restaurant id implied by the category, if any
        """
        if draft.category_id is None:
            return None
        for category in categories:
            if category.id == draft.category_id:
                return category.restaurant_id
        raise ValidationError("Selected category does not belong to this restaurant")

    async def _restaurant_categories(
        self, restaurant_id: str | None, categories: Sequence[Category] | None
    ) -> Sequence[Category]:
        if categories is None:
            if restaurant_id is None:
                raise ValidationError("Menu item must belong to a restaurant")
            return await self.category_repository.list_for_restaurant(restaurant_id)
        if restaurant_id is None:
            return categories
        return [c for c in categories if c.restaurant_id == restaurant_id]

    async def create(  # type: ignore[override]
        self, draft: Draft, categories: Sequence[Category] | None = None
    ) -> MenuItem:
        """Create a menu item.

        Args:
            draft: Validated menu item payload
            categories: Known categories of the item's restaurant; fetched
                from the store when omitted

        Raises:
            MissingCategoryError: The restaurant has no categories
            ValidationError: The category belongs to another restaurant
        """
        self._check_draft(draft)
        draft = cast(MenuItemDraft, draft)
        known = await self._restaurant_categories(draft.restaurant_id, categories)
        if not known:
            raise MissingCategoryError()

        implied_restaurant_id = self._resolve_category(draft, known)
        restaurant_id = draft.restaurant_id or implied_restaurant_id
        if restaurant_id is None:
            raise ValidationError("Menu item must belong to a restaurant")

        if restaurant_id != draft.restaurant_id:
            draft = draft.model_copy(update={"restaurant_id": restaurant_id})
        return await super().create(draft)

    async def update(  # type: ignore[override]
        self, entity_id: str, draft: Draft, categories: Sequence[Category] | None = None
    ) -> MenuItem:
        """Update a menu item, checking its category when categories are known."""
        self._check_draft(draft)
        draft = cast(MenuItemDraft, draft)
        if categories is not None:
            self._resolve_category(
                draft, await self._restaurant_categories(draft.restaurant_id, categories)
            )
        return await super().update(entity_id, draft)


class OfferRepository(EntityRepository[Offer]):
    """Promotional offers with unique codes."""

    entity_type = EntityType.OFFER
    model = Offer
    order_by = "valid_until"

    async def _ensure_unique_code(self, code: str, entity_id: str | None = None) -> None:
        rows = await self._remote("check", self.store.select(self.table, filters={"code": code}))
        if any(str(row["id"]) != entity_id for row in rows):
            raise ConflictError(f"Offer code {code} already exists")

    async def _prepare_create(self, draft: Draft) -> dict[str, Any]:
        draft = cast(OfferDraft, draft)
        await self._ensure_unique_code(draft.code)
        row = draft.to_row()
        row["usage_count"] = 0
        return row

    async def _prepare_update(self, entity_id: str, draft: Draft) -> dict[str, Any]:
        draft = cast(OfferDraft, draft)
        await self._ensure_unique_code(draft.code, entity_id)
        # usage_count is maintained outside the console
        return draft.to_row()
