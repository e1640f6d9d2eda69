"""Client-side search and filtering over in-memory catalog snapshots.

Every filter is pure: it never performs I/O, never mutates its input and
preserves input order. Active filters combine with AND.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from catalog_admin.models.catalog_models import Category, MenuItem, Offer, Restaurant

ALL = "all"


def matches_text(query: str, *candidates: str | None) -> bool:
    """Case-insensitive substring match; an empty query matches everything."""
    needle = query.lower()
    if not needle:
        return True
    return any(needle in candidate.lower() for candidate in candidates if candidate)


def _category_value(restaurant: Restaurant) -> str | None:
    return restaurant.category.value if restaurant.category is not None else None


@dataclass(frozen=True)
class RestaurantQuery:
    """Restaurant list filters.

    Attributes:
        text: Matched against name and tags
        category: Cuisine taxonomy value, or "all"
        featured_only: Keep only featured restaurants
    """

    text: str = ""
    category: str = ALL
    featured_only: bool = False


@dataclass(frozen=True)
class MenuItemQuery:
    """Menu item list filters.

    Attributes:
        text: Matched against item name and restaurant name
        category_id: Selected category, None for every category
        restaurant_id: Selected restaurant id as a string, or "all"
        available: Keep only items with this availability, None for both
    """

    text: str = ""
    category_id: str | None = None
    restaurant_id: str = ALL
    available: bool | None = None


@dataclass(frozen=True)
class OfferQuery:
    text: str = ""
    status: str = ALL
    type: str = ALL


class CatalogQueryEngine:
    """Filters catalog collections for list views.

    The engine keeps a restaurant-name lookup so menu items can be searched by
    the name of the restaurant they belong to.
    """

    def __init__(self, restaurants: Iterable[Restaurant] = ()) -> None:
        self.restaurant_names: dict[str, str] = {r.id: r.name for r in restaurants}

    def restaurants(
        self, restaurants: Sequence[Restaurant], query: RestaurantQuery
    ) -> list[Restaurant]:
        return [
            r
            for r in restaurants
            if matches_text(query.text, r.name, *r.tags)
            and (query.category == ALL or _category_value(r) == query.category)
            and (not query.featured_only or r.featured)
        ]

    def menu_items(
        self,
        items: Sequence[MenuItem],
        query: MenuItemQuery,
        restaurant_names: Mapping[str, str] | None = None,
    ) -> list[MenuItem]:
        names = restaurant_names if restaurant_names is not None else self.restaurant_names
        return [
            item
            for item in items
            if matches_text(query.text, item.name, names.get(item.restaurant_id or ""))
            and (not query.category_id or item.category_id == query.category_id)
            and (query.restaurant_id == ALL or str(item.restaurant_id) == query.restaurant_id)
            and (query.available is None or item.is_available == query.available)
        ]

    def categories(self, categories: Sequence[Category], text: str = "") -> list[Category]:
        return [c for c in categories if matches_text(text, c.name)]

    def offers(self, offers: Sequence[Offer], query: OfferQuery) -> list[Offer]:
        return [
            o
            for o in offers
            if matches_text(query.text, o.title, o.code)
            and (query.status == ALL or o.effective_status.value == query.status)
            and (query.type == ALL or o.type.value == query.type)
        ]


def sort_by_spice(items: Sequence[MenuItem], descending: bool = False) -> list[MenuItem]:
    """Order items by spice intensity; ties keep their input order."""
    return sorted(items, key=lambda item: item.spicy_level.intensity, reverse=descending)
