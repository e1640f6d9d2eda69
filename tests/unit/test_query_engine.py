"""Unit tests for the catalog query engine."""

from datetime import date
from decimal import Decimal

import pytest

from catalog_admin.models.catalog_models import (
    Category,
    MenuItem,
    Offer,
    OfferStatus,
    OfferType,
    Restaurant,
    RestaurantCategory,
    SpiceLevel,
)
from catalog_admin.services.query_engine import (
    CatalogQueryEngine,
    MenuItemQuery,
    OfferQuery,
    RestaurantQuery,
    matches_text,
    sort_by_spice,
)


@pytest.fixture
def restaurants() -> list[Restaurant]:
    return [
        Restaurant(
            id="1",
            name="Pizza Palace",
            category=RestaurantCategory.BBQ,
            tags=["Fast Food"],
            featured=True,
        ),
        Restaurant(id="2", name="Sushi Master", category=RestaurantCategory.CHAAT),
        Restaurant(id="3", name="Karachi Grill", category=RestaurantCategory.BBQ, tags=["Pizza"]),
    ]


@pytest.fixture
def menu_items() -> list[MenuItem]:
    return [
        MenuItem(
            id="101",
            restaurant_id="1",
            category_id="12",
            name="Margherita Pizza",
            price=Decimal("12.99"),
        ),
        MenuItem(
            id="102",
            restaurant_id="1",
            category_id="11",
            name="Spicy Wings",
            price=Decimal("8.50"),
            spicy_level=SpiceLevel.HOT,
            is_available=False,
        ),
        MenuItem(
            id="201",
            restaurant_id="2",
            category_id="21",
            name="Salmon Roll",
            price=Decimal("9.00"),
            spicy_level=SpiceLevel.MILD,
        ),
        MenuItem(
            id="202",
            restaurant_id="2",
            category_id="21",
            name="Dragon Roll",
            price=Decimal("11.00"),
            spicy_level=SpiceLevel.HOT,
        ),
    ]


@pytest.fixture
def engine(restaurants: list[Restaurant]) -> CatalogQueryEngine:
    return CatalogQueryEngine(restaurants)


@pytest.mark.unit
class TestMatchesText:
    def test_empty_query_matches_everything(self) -> None:
        assert matches_text("", "anything")
        assert matches_text("", None)

    def test_case_insensitive(self) -> None:
        assert matches_text("PIZ", "Margherita Pizza")

    def test_missing_candidates_never_match(self) -> None:
        assert not matches_text("a", None, "")


@pytest.mark.unit
class TestRestaurantFilters:
    """Tests for restaurant search and filters."""

    def test_text_matches_name_or_tags(
        self, engine: CatalogQueryEngine, restaurants: list[Restaurant]
    ) -> None:
        result = engine.restaurants(restaurants, RestaurantQuery(text="pizza"))

        assert [r.id for r in result] == ["1", "3"]

    def test_all_category_is_unfiltered(
        self, engine: CatalogQueryEngine, restaurants: list[Restaurant]
    ) -> None:
        assert engine.restaurants(restaurants, RestaurantQuery()) == restaurants

    def test_filters_combine_with_and(
        self, engine: CatalogQueryEngine, restaurants: list[Restaurant]
    ) -> None:
        """Test that text, category and featured filters must all hold."""
        query = RestaurantQuery(text="pizza", category="bbq", featured_only=True)

        result = engine.restaurants(restaurants, query)

        assert [r.id for r in result] == ["1"]

    def test_input_not_mutated(
        self, engine: CatalogQueryEngine, restaurants: list[Restaurant]
    ) -> None:
        before = list(restaurants)

        engine.restaurants(restaurants, RestaurantQuery(text="sushi"))

        assert restaurants == before


@pytest.mark.unit
class TestMenuItemFilters:
    """Tests for menu item search and filters."""

    @pytest.mark.parametrize(
        "query",
        [
            MenuItemQuery(),
            MenuItemQuery(text="roll"),
            MenuItemQuery(text="sushi"),
            MenuItemQuery(category_id="21"),
            MenuItemQuery(restaurant_id="1", available=True),
            MenuItemQuery(text="o", restaurant_id="2", category_id="21"),
        ],
    )
    def test_result_is_ordered_subset(
        self, engine: CatalogQueryEngine, menu_items: list[MenuItem], query: MenuItemQuery
    ) -> None:
        """Test that any filter returns a subset of its input in input order."""
        result = engine.menu_items(menu_items, query)

        positions = [menu_items.index(item) for item in result]
        assert positions == sorted(positions)

    def test_text_matches_restaurant_name(
        self, engine: CatalogQueryEngine, menu_items: list[MenuItem]
    ) -> None:
        result = engine.menu_items(menu_items, MenuItemQuery(text="sushi master"))

        assert [i.id for i in result] == ["201", "202"]

    def test_restaurant_all_shows_everything(
        self, engine: CatalogQueryEngine, menu_items: list[MenuItem]
    ) -> None:
        assert engine.menu_items(menu_items, MenuItemQuery(restaurant_id="all")) == menu_items

    def test_category_and_text_combine(
        self, engine: CatalogQueryEngine, menu_items: list[MenuItem]
    ) -> None:
        result = engine.menu_items(menu_items, MenuItemQuery(text="dragon", category_id="21"))

        assert [i.id for i in result] == ["202"]

    def test_availability_filter(
        self, engine: CatalogQueryEngine, menu_items: list[MenuItem]
    ) -> None:
        result = engine.menu_items(menu_items, MenuItemQuery(available=False))

        assert [i.id for i in result] == ["102"]

    def test_explicit_names_override_lookup(self, menu_items: list[MenuItem]) -> None:
        engine = CatalogQueryEngine()

        result = engine.menu_items(
            menu_items, MenuItemQuery(text="grill"), restaurant_names={"2": "Grill House"}
        )

        assert [i.id for i in result] == ["201", "202"]


@pytest.mark.unit
class TestOtherFilters:
    def test_categories_by_name(self, engine: CatalogQueryEngine) -> None:
        categories = [
            Category(id="11", restaurant_id="1", name="Appetizers"),
            Category(id="12", restaurant_id="1", name="Main Course"),
        ]

        assert engine.categories(categories, "main") == [categories[1]]
        assert engine.categories(categories) == categories

    def test_offers_by_code_status_and_type(self, engine: CatalogQueryEngine) -> None:
        offers = [
            Offer(
                id="1",
                title="Welcome",
                code="WELCOME50",
                valid_until=date(2099, 1, 1),
                type=OfferType.NEW_USER,
            ),
            Offer(
                id="2",
                title="Weekend",
                code="WEEKEND25",
                valid_until=date(2020, 1, 1),
                type=OfferType.WEEKEND,
            ),
        ]

        assert engine.offers(offers, OfferQuery(text="welcome")) == [offers[0]]
        assert engine.offers(offers, OfferQuery(status=OfferStatus.EXPIRED.value)) == [offers[1]]
        assert engine.offers(offers, OfferQuery(type="weekend", status="active")) == []


@pytest.mark.unit
class TestSortBySpice:
    def test_ascending_is_stable(self, menu_items: list[MenuItem]) -> None:
        """Test that items with equal spice keep their relative order."""
        result = sort_by_spice(menu_items)

        assert [i.id for i in result] == ["101", "201", "102", "202"]

    def test_descending(self, menu_items: list[MenuItem]) -> None:
        result = sort_by_spice(menu_items, descending=True)

        assert [i.id for i in result] == ["102", "202", "201", "101"]
