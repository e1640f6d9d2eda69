"""Shared pytest fixtures and configuration for all tests."""

from typing import Any

import pytest

from catalog_admin.main import create_view_model
from catalog_admin.services.asset_uploader import AssetUploader, ImageFile
from catalog_admin.services.catalog_view_model import CatalogViewModel
from catalog_admin.stores.memory_store import InMemoryAssetStore, InMemoryCatalogStore

MIB = 1024 * 1024


@pytest.fixture
def seed_data() -> dict[str, list[dict[str, Any]]]:
    """Fixture providing a small seeded catalog.

    Restaurant "1" has two categories and two items, restaurant "2" has no
    categories yet.
    """
    return {
        "restaurants": [
            {
                "id": "1",
                "name": "Pizza Palace",
                "description": "Wood-fired pizza",
                "image": "https://assets.local/restaurant-images/pizza.jpg",
                "opening_hours": "11:00 - 23:00",
                "tags": ["Fast Food", "Traditional"],
                "category": "bbq",
                "price_range": "$$",
                "distance": "1.2 km",
                "estimated_time": "25-30 min",
                "featured": True,
                "rating": 4.7,
                "created_at": "2024-01-10T10:00:00+00:00",
                "updated_at": "2024-01-10T10:00:00+00:00",
            },
            {
                "id": "2",
                "name": "Sushi Master",
                "description": "Fresh rolls",
                "image": "https://assets.local/restaurant-images/sushi.jpg",
                "opening_hours": "12:00 - 22:00",
                "tags": ["Street Food"],
                "category": "chaat",
                "price_range": "$$$",
                "distance": "3 km",
                "estimated_time": "35-40 min",
                "featured": False,
                "rating": 4.2,
                "created_at": "2024-02-01T10:00:00+00:00",
                "updated_at": "2024-02-01T10:00:00+00:00",
            },
        ],
        "menu_categories": [
            {
                "id": "12",
                "restaurant_id": "1",
                "name": "Main Course",
                "description": "Hearty main dishes",
                "display_order": 2,
            },
            {
                "id": "11",
                "restaurant_id": "1",
                "name": "Appetizers",
                "description": "Start your meal right",
                "display_order": 1,
            },
        ],
        "menu_items": [
            {
                "id": "101",
                "restaurant_id": "1",
                "category_id": "12",
                "name": "Margherita Pizza",
                "description": "Fresh tomatoes, mozzarella, basil",
                "price": "12.99",
                "image_url": "",
                "is_available": True,
                "preparation_time": "20-25 mins",
                "allergens": ["Milk", "Wheat"],
                "spicy_level": "none",
                "is_vegetarian": True,
                "is_vegan": False,
            },
            {
                "id": "102",
                "restaurant_id": "1",
                "category_id": "11",
                "name": "Spicy Wings",
                "description": "Chicken wings, hot sauce",
                "price": "8.50",
                "image_url": "",
                "is_available": False,
                "preparation_time": "15-20 mins",
                "allergens": [],
                "spicy_level": "hot",
                "is_vegetarian": False,
                "is_vegan": False,
            },
        ],
        "offers": [
            {
                "id": "201",
                "title": "Welcome Discount",
                "code": "WELCOME50",
                "discount": "50% OFF",
                "valid_until": "2099-03-31",
                "type": "new_user",
                "status": None,
                "usage_count": 156,
            },
            {
                "id": "202",
                "title": "Weekend Special",
                "code": "WEEKEND25",
                "discount": "25% OFF",
                "valid_until": "2020-03-30",
                "type": "weekend",
                "status": None,
                "usage_count": 0,
            },
        ],
    }


@pytest.fixture
def catalog_store(seed_data: dict[str, list[dict[str, Any]]]) -> InMemoryCatalogStore:
    """Fixture providing an in-memory catalog store seeded with seed_data."""
    return InMemoryCatalogStore(seed=seed_data)


@pytest.fixture
def asset_store() -> InMemoryAssetStore:
    return InMemoryAssetStore()


@pytest.fixture
def uploader(asset_store: InMemoryAssetStore) -> AssetUploader:
    return AssetUploader(asset_store)


@pytest.fixture
def view_model(
    catalog_store: InMemoryCatalogStore, asset_store: InMemoryAssetStore
) -> CatalogViewModel:
    """Fixture providing a view model over the seeded in-memory stores."""
    return create_view_model(catalog_store, asset_store)


@pytest.fixture
def png_file() -> ImageFile:
    """Fixture providing a small PNG image."""
    return ImageFile(
        filename="dish.png", content_type="image/png", content=b"\x89PNG\r\n\x1a\nfake"
    )


@pytest.fixture
def large_image() -> ImageFile:
    """Fixture providing a 6 MiB JPEG, over the upload limit."""
    return ImageFile(filename="huge.jpg", content_type="image/jpeg", content=b"\0" * (6 * MIB))
