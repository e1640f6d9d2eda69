"""Component tests for end-to-end catalog workflows over the in-memory stores."""

from decimal import Decimal

import pytest

from catalog_admin.errors import NotFoundError
from catalog_admin.models.catalog_models import ALLERGENS, EntityType, Restaurant
from catalog_admin.repositories.catalog_repositories import CategoryRepository, MenuItemRepository
from catalog_admin.services.asset_uploader import ImageFile
from catalog_admin.services.catalog_view_model import CatalogViewModel
from catalog_admin.services.query_engine import RestaurantQuery
from catalog_admin.stores.memory_store import InMemoryAssetStore, InMemoryCatalogStore


@pytest.mark.component
class TestCatalogWorkflow:
    """Workflows spanning forms, uploads, repositories and collections."""

    @pytest.mark.asyncio
    async def test_create_category_under_restaurant(
        self, view_model: CatalogViewModel, catalog_store: InMemoryCatalogStore
    ) -> None:
        """Test that a new category is listed once under its restaurant with its order."""
        await view_model.load_menu("2")
        form = view_model.open_form(EntityType.CATEGORY)
        form.set_field("name", "Starters")
        form.set_field("display_order", "1")

        result = await view_model.submit_form(form)

        assert result.success is True
        listed = await CategoryRepository(catalog_store).list_for_restaurant("2")
        assert [(c.name, c.display_order) for c in listed] == [("Starters", 1)]
        assert view_model.categories == listed
        assert view_model.can_add_menu_item is True

    @pytest.mark.asyncio
    async def test_oversized_image_does_not_block_submission(
        self,
        view_model: CatalogViewModel,
        asset_store: InMemoryAssetStore,
        large_image: ImageFile,
    ) -> None:
        """Test that a rejected 6 MiB file sets no preview and the form still submits."""
        await view_model.load_menu("1")
        form = view_model.open_form(EntityType.MENU_ITEM)
        form.set_field("name", "Kheer")
        form.set_field("price", "4.00")
        form.set_field("category_id", "12")

        reason = form.attach_image(large_image)
        result = await view_model.submit_form(form)

        assert reason == "Image size should be less than 5MB"
        assert form.image_preview == ""
        assert result.success is True
        assert asset_store.uploads == []

    @pytest.mark.asyncio
    async def test_restaurant_without_image_rejected_before_network(
        self, view_model: CatalogViewModel, catalog_store: InMemoryCatalogStore
    ) -> None:
        form = view_model.open_form(EntityType.RESTAURANT)
        form.set_field("name", "Karachi Grill")
        form.set_field("description", "Charcoal grill")

        result = await view_model.submit_form(form)

        assert result.success is False
        assert result.error_message == "Please upload an image"
        assert catalog_store.calls == []

    @pytest.mark.asyncio
    async def test_delete_stale_menu_item(
        self, view_model: CatalogViewModel, catalog_store: InMemoryCatalogStore
    ) -> None:
        """Test that deleting an id removed elsewhere fails and keeps the collection."""
        await view_model.load_menu("1")
        await catalog_store.delete("menu_items", "101")

        result = await view_model.delete(EntityType.MENU_ITEM, "101")

        assert result.success is False
        assert result.error_message == "Menu item 101 no longer exists"
        assert {i.id for i in view_model.menu_items} == {"101", "102"}

    @pytest.mark.asyncio
    async def test_stale_delete_raises_not_found_from_repository(
        self, catalog_store: InMemoryCatalogStore
    ) -> None:
        repository = MenuItemRepository(catalog_store, CategoryRepository(catalog_store))
        await catalog_store.delete("menu_items", "101")

        with pytest.raises(NotFoundError):
            await repository.delete("101")

    @pytest.mark.asyncio
    async def test_restaurant_without_categories_never_accepts_items(
        self, view_model: CatalogViewModel, catalog_store: InMemoryCatalogStore
    ) -> None:
        await view_model.load_menu("2")

        for price in ("1", "9.99", "120.50"):
            form = view_model.open_form(EntityType.MENU_ITEM)
            form.set_field("name", "Roll")
            form.set_field("price", price)
            result = await view_model.submit_form(form)
            assert result.error_message == "Please add a category before adding menu items"

        assert ("insert", "menu_items") not in catalog_store.calls

    @pytest.mark.asyncio
    async def test_menu_item_prices_are_exact(self, view_model: CatalogViewModel) -> None:
        await view_model.load_menu("1")

        for price in ("0.10", "12.99", "19.95", "1000.01"):
            form = view_model.open_form(EntityType.MENU_ITEM)
            form.set_field("name", f"Dish {price}")
            form.set_field("price", price)
            form.set_field("category_id", "11")
            result = await view_model.submit_form(form)
            assert result.entity is not None
            assert result.entity.price == Decimal(price)  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_upload_then_create_then_search(
        self,
        view_model: CatalogViewModel,
        asset_store: InMemoryAssetStore,
        png_file: ImageFile,
    ) -> None:
        """Test the full restaurant flow from staged image to searchable entry."""
        await view_model.load_restaurants()
        form = view_model.open_form(EntityType.RESTAURANT)
        form.set_field("name", "Karachi Grill")
        form.set_field("description", "Charcoal grill")
        form.set_field("category", "bbq")
        form.toggle("tags", "Karahi")
        form.attach_image(png_file)

        result = await view_model.submit_form(form, default_categories=["Starters"])

        assert result.success is True
        assert isinstance(result.entity, Restaurant)
        bucket, path = asset_store.uploads[0]
        assert result.entity.image == f"https://assets.local/{bucket}/{path}"
        found = view_model.search_restaurants(RestaurantQuery(text="karahi", category="bbq"))
        assert [r.id for r in found] == [result.entity.id]

    @pytest.mark.asyncio
    async def test_edit_menu_item_allergens(self, view_model: CatalogViewModel) -> None:
        await view_model.load_menu("1")
        item = next(i for i in view_model.menu_items if i.id == "101")
        form = view_model.open_form(EntityType.MENU_ITEM, item)
        form.toggle("allergens", "Milk")
        form.toggle("allergens", ALLERGENS[-1])

        result = await view_model.submit_form(form)

        assert result.success is True
        updated = next(i for i in view_model.menu_items if i.id == "101")
        assert updated.allergens == ["Wheat", ALLERGENS[-1]]
