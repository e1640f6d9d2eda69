"""View model composing repositories, forms and queries for the admin views."""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import cast

from catalog_admin.errors import CatalogError, MissingCategoryError, RemoteError
from catalog_admin.models.catalog_models import (
    CatalogEntity,
    Category,
    EntityType,
    MenuItem,
    Offer,
    Restaurant,
)
from catalog_admin.models.form_models import CategoryDraft, Draft
from catalog_admin.repositories.catalog_repositories import (
    CategoryRepository,
    EntityRepository,
    MenuItemRepository,
    OfferRepository,
    RestaurantRepository,
)
from catalog_admin.services.asset_uploader import AssetUploader
from catalog_admin.services.form_controller import CatalogFormController
from catalog_admin.services.query_engine import (
    CatalogQueryEngine,
    MenuItemQuery,
    OfferQuery,
    RestaurantQuery,
)

logger = logging.getLogger(__name__)

COPIED_INDICATOR_SECONDS = 2.0


@dataclass
class OperationResult:
    """Result of a view model operation.

    Attributes:
        success: Whether the operation completed
        entity_type: Entity type the operation targeted
        entity: The persisted entity for create and update
        error_message: User-facing failure reason, None on success
        warnings: Follow-up steps that failed after the main write succeeded
    """

    success: bool
    entity_type: EntityType
    entity: CatalogEntity | None = None
    error_message: str | None = None
    warnings: list[str] = field(default_factory=list)


class CatalogViewModel:
    """Owns the in-memory catalog collections shown by the admin views.

    Collections are loaded once and then patched from the entity returned by
    each successful write: appended (or placed in sort position), replaced by
    id, or removed by id. A failed operation never touches a collection.
    """

    def __init__(
        self,
        restaurant_repository: RestaurantRepository,
        category_repository: CategoryRepository,
        menu_item_repository: MenuItemRepository,
        offer_repository: OfferRepository,
        uploader: AssetUploader,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the view model.

        Args:
            restaurant_repository: Restaurant CRUD
            category_repository: Menu category CRUD
            menu_item_repository: Menu item CRUD
            offer_repository: Offer CRUD
            uploader: Image uploader handed to form controllers
            clock: Monotonic clock used for the copied-code indicator
        """
        self.repositories: dict[EntityType, EntityRepository] = {
            EntityType.RESTAURANT: restaurant_repository,
            EntityType.CATEGORY: category_repository,
            EntityType.MENU_ITEM: menu_item_repository,
            EntityType.OFFER: offer_repository,
        }
        self.uploader = uploader
        self.clock = clock

        self.restaurants: list[Restaurant] = []
        self.categories: list[Category] = []
        self.menu_items: list[MenuItem] = []
        self.offers: list[Offer] = []
        self.restaurant_id: str | None = None
        self._copied_at: dict[str, float] = {}

    def _collection(self, entity_type: EntityType) -> list:
        return {
            EntityType.RESTAURANT: self.restaurants,
            EntityType.CATEGORY: self.categories,
            EntityType.MENU_ITEM: self.menu_items,
            EntityType.OFFER: self.offers,
        }[entity_type]

    def _failure(
        self, entity_type: EntityType, action: str, error: CatalogError
    ) -> OperationResult:
        if isinstance(error, RemoteError):
            # the cause stays in the logs; users get a generic message
            logger.error(f"Failed to {action} {entity_type.label}: {error.cause}")
            message = f"Failed to {action} {entity_type.label}"
        else:
            message = error.message
        return OperationResult(success=False, entity_type=entity_type, error_message=message)

    # Loading

    async def load_restaurants(self) -> OperationResult:
        """Fetch restaurants, newest first."""
        try:
            restaurants = await self.repositories[EntityType.RESTAURANT].list_all()
        except CatalogError as e:
            return self._failure(EntityType.RESTAURANT, "load", e)
        self.restaurants[:] = restaurants
        return OperationResult(success=True, entity_type=EntityType.RESTAURANT)

    async def load_menu(self, restaurant_id: str) -> OperationResult:
        """Fetch categories and menu items for one restaurant.

        Both fetches must succeed before either collection is replaced.
        """
        category_repository = self.repositories[EntityType.CATEGORY]
        menu_item_repository = self.repositories[EntityType.MENU_ITEM]
        try:
            categories = await category_repository.list_all({"restaurant_id": restaurant_id})
            items = await menu_item_repository.list_all({"restaurant_id": restaurant_id})
        except CatalogError as e:
            logger.error(f"Failed to load menu data for restaurant {restaurant_id}: {e}")
            return OperationResult(
                success=False,
                entity_type=EntityType.MENU_ITEM,
                error_message="Failed to load menu data",
            )

        self.restaurant_id = restaurant_id
        self.categories[:] = categories
        self.menu_items[:] = items
        return OperationResult(success=True, entity_type=EntityType.MENU_ITEM)

    async def load_offers(self) -> OperationResult:
        try:
            offers = await self.repositories[EntityType.OFFER].list_all()
        except CatalogError as e:
            return self._failure(EntityType.OFFER, "load", e)
        self.offers[:] = offers
        return OperationResult(success=True, entity_type=EntityType.OFFER)

    # Forms

    @property
    def can_add_menu_item(self) -> bool:
        """Menu items can only be added once the restaurant has a category."""
        return self.restaurant_id is not None and bool(self.categories)

    def open_form(
        self, entity_type: EntityType, entity: CatalogEntity | None = None
    ) -> CatalogFormController:
        """Start a staged edit; pass an entity to edit it, omit it to create one."""
        context = {}
        if entity is None and entity_type in (EntityType.CATEGORY, EntityType.MENU_ITEM):
            context["restaurant_id"] = self.restaurant_id
        return CatalogFormController(entity_type, self.uploader, entity=entity, context=context)

    async def _write(self, form: CatalogFormController, draft: Draft) -> CatalogEntity:
        repository = self.repositories[form.entity_type]
        if form.entity_type is EntityType.MENU_ITEM:
            items = cast(MenuItemRepository, repository)
            categories = self.categories if self.restaurant_id is not None else None
            if form.is_editing:
                return await items.update(form.entity_id, draft, categories=categories)
            return await items.create(draft, categories=categories)

        if form.is_editing:
            return await repository.update(form.entity_id, draft)
        return await repository.create(draft)

    async def submit_form(
        self, form: CatalogFormController, default_categories: Sequence[str] = ()
    ) -> OperationResult:
        """Validate a form, persist its draft and patch the matching collection.

        Args:
            form: Controller returned by open_form()
            default_categories: Category names to create under a new
                restaurant; each is a separate remote call and a failure is
                reported as a warning, the restaurant is kept

        Returns:
            OperationResult with the persisted entity or a single failure reason
        """
        entity_type = form.entity_type
        if entity_type is EntityType.MENU_ITEM and not form.is_editing:
            if not self.can_add_menu_item:
                # before validation so a staged image is never uploaded
                return self._failure(entity_type, "save", MissingCategoryError())
        submission = await form.submit()
        if not submission.success or submission.draft is None:
            return OperationResult(
                success=False, entity_type=entity_type, error_message=submission.error_message
            )

        editing = form.is_editing
        try:
            entity = await self._write(form, submission.draft)
        except CatalogError as e:
            return self._failure(entity_type, "save", e)

        if editing:
            self._replace(entity_type, entity)
        else:
            self._append(entity_type, entity)
        form.is_closed = True

        result = OperationResult(success=True, entity_type=entity_type, entity=entity)
        if entity_type is EntityType.RESTAURANT and not editing:
            result.warnings = await self._create_default_categories(entity.id, default_categories)
        return result

    async def _create_default_categories(
        self, restaurant_id: str, names: Sequence[str]
    ) -> list[str]:
        warnings = []
        repository = self.repositories[EntityType.CATEGORY]
        for order, name in enumerate(names, start=1):
            draft = CategoryDraft(restaurant_id=restaurant_id, name=name, display_order=order)
            try:
                category = await repository.create(draft)
            except CatalogError as e:
                logger.warning(f"Default category {name!r} not created for {restaurant_id}: {e}")
                warnings.append(f"Failed to create category {name}")
                continue
            if restaurant_id == self.restaurant_id:
                self._append(EntityType.CATEGORY, category)
        return warnings

    async def delete(self, entity_type: EntityType, entity_id: str) -> OperationResult:
        """Delete an entity remotely, then drop it from its collection.

        A failure (including a stale id) leaves the collection unchanged.
        """
        try:
            await self.repositories[entity_type].delete(entity_id)
        except CatalogError as e:
            return self._failure(entity_type, "delete", e)

        collection = self._collection(entity_type)
        collection[:] = [entity for entity in collection if entity.id != entity_id]
        if entity_type is EntityType.RESTAURANT and entity_id == self.restaurant_id:
            self.restaurant_id = None
            self.categories.clear()
            self.menu_items.clear()
        return OperationResult(success=True, entity_type=entity_type)

    def _append(self, entity_type: EntityType, entity: CatalogEntity) -> None:
        if entity_type is EntityType.RESTAURANT:
            self.restaurants.insert(0, entity)  # type: ignore[arg-type]
            return
        if entity_type in (EntityType.CATEGORY, EntityType.MENU_ITEM):
            if getattr(entity, "restaurant_id", None) != self.restaurant_id:
                return
        collection = self._collection(entity_type)
        collection.append(entity)
        if entity_type is EntityType.CATEGORY:
            collection.sort(key=lambda c: c.display_order)

    def _replace(self, entity_type: EntityType, entity: CatalogEntity) -> None:
        collection = self._collection(entity_type)
        for index, existing in enumerate(collection):
            if existing.id == entity.id:
                collection[index] = entity
                break
        if entity_type is EntityType.CATEGORY:
            collection.sort(key=lambda c: c.display_order)

    # Queries

    @property
    def query_engine(self) -> CatalogQueryEngine:
        return CatalogQueryEngine(self.restaurants)

    def search_restaurants(self, query: RestaurantQuery) -> list[Restaurant]:
        return self.query_engine.restaurants(self.restaurants, query)

    def search_menu_items(self, query: MenuItemQuery) -> list[MenuItem]:
        return self.query_engine.menu_items(self.menu_items, query)

    def search_offers(self, query: OfferQuery) -> list[Offer]:
        return self.query_engine.offers(self.offers, query)

    # Offer codes

    def copy_offer_code(self, code: str) -> str:
        """Mark an offer code as copied and return it for the clipboard."""
        now = self.clock()
        for expired in [
            c for c, at in self._copied_at.items() if now - at >= COPIED_INDICATOR_SECONDS
        ]:
            del self._copied_at[expired]
        self._copied_at[code] = now
        return code

    def is_code_copied(self, code: str) -> bool:
        """Whether the copied indicator for a code is still showing."""
        copied_at = self._copied_at.get(code)
        if copied_at is None:
            return False
        if self.clock() - copied_at >= COPIED_INDICATOR_SECONDS:
            del self._copied_at[code]
            return False
        return True
