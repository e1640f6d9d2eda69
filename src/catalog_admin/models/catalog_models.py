"""Catalog entity models.

These models represent the persisted catalog entities (restaurants, menu
categories, menu items and offers) as they come back from the remote catalog
store. Each model converts to and from the store's row format.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RATING = Decimal("4.5")

ALLERGENS: tuple[str, ...] = (
    "Milk",
    "Eggs",
    "Fish",
    "Shellfish",
    "Tree Nuts",
    "Peanuts",
    "Wheat",
    "Soy",
)

SUGGESTED_TAGS: tuple[str, ...] = (
    "Pakistani",
    "BBQ",
    "Biryani",
    "Traditional",
    "Fast Food",
    "Karahi",
    "Street Food",
    "Desserts",
)


class EntityType(str, Enum):
    """Catalog entity types, valued by their remote table name."""

    RESTAURANT = "restaurants"
    CATEGORY = "menu_categories"
    MENU_ITEM = "menu_items"
    OFFER = "offers"

    @property
    def label(self) -> str:
        """Human readable singular name used in messages."""
        return {
            EntityType.RESTAURANT: "restaurant",
            EntityType.CATEGORY: "category",
            EntityType.MENU_ITEM: "menu item",
            EntityType.OFFER: "offer",
        }[self]


class RestaurantCategory(str, Enum):
    """Fixed cuisine taxonomy for restaurants."""

    BIRYANI = "biryani"
    KARAHI = "karahi"
    BBQ = "bbq"
    NIHARI = "nihari"
    PARATHA = "paratha"
    CHAAT = "chaat"
    DESSERT = "dessert"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]


_CATEGORY_NAMES = {
    RestaurantCategory.BIRYANI: "Biryani",
    RestaurantCategory.KARAHI: "Karahi",
    RestaurantCategory.BBQ: "BBQ",
    RestaurantCategory.NIHARI: "Nihari",
    RestaurantCategory.PARATHA: "Paratha",
    RestaurantCategory.CHAAT: "Chaat",
    RestaurantCategory.DESSERT: "Mithai",
}


class PriceTier(str, Enum):
    """Ordinal price tier of a restaurant."""

    BUDGET = "$"
    MODERATE = "$$"
    EXPENSIVE = "$$$"
    LUXURY = "$$$$"

    @property
    def level(self) -> int:
        return len(self.value)


class SpiceLevel(str, Enum):
    """Spice level of a menu item, totally ordered by intensity."""

    NONE = "none"
    MILD = "mild"
    MEDIUM = "medium"
    HOT = "hot"
    EXTRA_HOT = "extra hot"

    @property
    def intensity(self) -> int:
        """Rendering intensity from 0 (not spicy) to 4 (extra hot)."""
        return list(SpiceLevel).index(self)

    @property
    def label(self) -> str:
        if self is SpiceLevel.NONE:
            return "Not Spicy"
        return self.value.title()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SpiceLevel):
            return NotImplemented
        return self.intensity < other.intensity


class OfferType(str, Enum):
    """Promotional offer types."""

    NEW_USER = "new_user"
    FLASH_DEAL = "flash_deal"
    WEEKEND = "weekend"
    PARTNERSHIP = "partnership"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class OfferStatus(str, Enum):
    """Offer lifecycle status."""

    ACTIVE = "active"
    EXPIRED = "expired"
    SCHEDULED = "scheduled"


def derive_offer_status(
    valid_until: date, starts_on: date | None = None, today: date | None = None
) -> OfferStatus:
    """Derive an offer status from its validity window.

    Args:
        valid_until: Last day the offer can be redeemed
        starts_on: First day the offer can be redeemed, if scheduled
        today: Reference date (defaults to the current UTC date)

    Returns:
        OfferStatus for the reference date
    """
    today = today or datetime.now(UTC).date()
    if valid_until < today:
        return OfferStatus.EXPIRED
    if starts_on is not None and starts_on > today:
        return OfferStatus.SCHEDULED
    return OfferStatus.ACTIVE


def _parse_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class CatalogEntity(BaseModel):
    """Common base for persisted catalog entities."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: str = Field(..., description="Store-assigned identifier")

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> str:
        """Store identifiers may be integers; keep them as strings."""
        return str(v)


class Restaurant(CatalogEntity):
    """Restaurant model."""

    name: str = Field(..., min_length=1, description="Restaurant name")
    description: str = Field(default="", description="Restaurant description")
    image: str = Field(default="", description="Public URL of the restaurant image")
    opening_hours: str = Field(default="", description="Opening hours, free text")
    category: RestaurantCategory | None = Field(None, description="Cuisine taxonomy tag")
    price_range: PriceTier | None = Field(None, description="Price tier")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    rating: Decimal = Field(default=DEFAULT_RATING, ge=0, le=5, description="Rating 0-5")
    featured: bool = Field(default=False, description="Whether the restaurant is featured")
    distance: str = Field(default="", description="Display distance")
    estimated_time: str = Field(default="", description="Display delivery estimate")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")

    def to_row(self) -> dict[str, Any]:
        """Convert to the remote store row format.

        Returns:
            dict: Store-compatible representation
        """
        row: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "opening_hours": self.opening_hours,
            "category": self.category.value if self.category else None,
            "price_range": self.price_range.value if self.price_range else None,
            "tags": list(self.tags),
            "rating": float(self.rating),
            "featured": self.featured,
            "distance": self.distance,
            "estimated_time": self.estimated_time,
        }
        if self.created_at is not None:
            row["created_at"] = self.created_at.isoformat()
        if self.updated_at is not None:
            row["updated_at"] = self.updated_at.isoformat()
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Restaurant":
        """Create a Restaurant from a store row.

        Args:
            row: Store row dictionary

        Returns:
            Restaurant: Parsed model instance
        """
        rating = row.get("rating")
        return cls(
            id=row["id"],
            name=row["name"],
            description=row.get("description") or "",
            image=row.get("image") or "",
            opening_hours=row.get("opening_hours") or "",
            category=row.get("category") or None,
            price_range=row.get("price_range") or None,
            tags=row.get("tags") or [],
            rating=DEFAULT_RATING if rating is None else Decimal(str(rating)),
            featured=bool(row.get("featured", False)),
            distance=row.get("distance") or "",
            estimated_time=row.get("estimated_time") or "",
            created_at=_parse_datetime(row.get("created_at")),
            updated_at=_parse_datetime(row.get("updated_at")),
        )


class Category(CatalogEntity):
    """Menu category model."""

    restaurant_id: str = Field(..., description="Restaurant this category belongs to")
    name: str = Field(..., description="Category name")
    description: str = Field(default="", description="Category description")
    display_order: int = Field(default=0, description="Display order of category")

    @field_validator("restaurant_id", mode="before")
    @classmethod
    def normalize_restaurant_id(cls, v: Any) -> str:
        return str(v)

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "description": self.description,
            "display_order": self.display_order,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Category":
        return cls(
            id=row["id"],
            restaurant_id=row["restaurant_id"],
            name=row["name"],
            description=row.get("description") or "",
            display_order=row.get("display_order") or 0,
        )


class MenuItem(CatalogEntity):
    """Menu item model."""

    restaurant_id: str | None = Field(None, description="Restaurant this item belongs to")
    category_id: str | None = Field(None, description="Category this item belongs to")
    name: str = Field(..., description="Item name")
    description: str = Field(default="", description="Item description")
    price: Decimal = Field(..., ge=0, description="Item price")
    image_url: str = Field(default="", description="Public URL of the item image")
    is_available: bool = Field(default=True, description="Whether item is currently available")
    preparation_time: str = Field(default="", description="Preparation time, e.g. '15-20 mins'")
    allergens: list[str] = Field(default_factory=list, description="Allergens in the item")
    spicy_level: SpiceLevel = Field(default=SpiceLevel.NONE, description="Spice level")
    is_vegetarian: bool = Field(default=False)
    is_vegan: bool = Field(default=False)

    @field_validator("restaurant_id", "category_id", mode="before")
    @classmethod
    def normalize_reference(cls, v: Any) -> str | None:
        if v in (None, ""):
            return None
        return str(v)

    @field_validator("allergens")
    @classmethod
    def validate_allergens(cls, v: list[str]) -> list[str]:
        """Validate that every allergen comes from the fixed vocabulary."""
        unknown = [a for a in v if a not in ALLERGENS]
        if unknown:
            raise ValueError(f"Unknown allergens: {', '.join(unknown)}")
        return v

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "image_url": self.image_url,
            "is_available": self.is_available,
            "preparation_time": self.preparation_time,
            "allergens": list(self.allergens),
            "spicy_level": self.spicy_level.value,
            "is_vegetarian": self.is_vegetarian,
            "is_vegan": self.is_vegan,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "MenuItem":
        return cls(
            id=row["id"],
            restaurant_id=row.get("restaurant_id"),
            category_id=row.get("category_id"),
            name=row["name"],
            description=row.get("description") or "",
            # Convert via str so float columns keep their two-decimal value
            price=Decimal(str(row["price"])),
            image_url=row.get("image_url") or "",
            is_available=row.get("is_available", True),
            preparation_time=row.get("preparation_time") or "",
            allergens=row.get("allergens") or [],
            spicy_level=row.get("spicy_level") or SpiceLevel.NONE,
            is_vegetarian=bool(row.get("is_vegetarian", False)),
            is_vegan=bool(row.get("is_vegan", False)),
        )


class Offer(CatalogEntity):
    """Promotional offer model."""

    title: str = Field(..., description="Offer title")
    code: str = Field(..., description="Redemption code shown to customers")
    discount: str = Field(default="", description="Discount description, e.g. '50% OFF'")
    valid_until: date = Field(..., description="Last valid day")
    starts_on: date | None = Field(None, description="First valid day, if scheduled")
    type: OfferType = Field(..., description="Offer type")
    status: OfferStatus | None = Field(None, description="Explicit status, derived when unset")
    usage_count: int = Field(default=0, ge=0, description="Number of redemptions")

    @property
    def effective_status(self) -> OfferStatus:
        """Explicit status if set, otherwise derived from the validity window."""
        if self.status is not None:
            return self.status
        return derive_offer_status(self.valid_until, self.starts_on)

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "code": self.code,
            "discount": self.discount,
            "valid_until": self.valid_until.isoformat(),
            "starts_on": self.starts_on.isoformat() if self.starts_on else None,
            "type": self.type.value,
            "status": self.status.value if self.status else None,
            "usage_count": self.usage_count,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Offer":
        return cls(
            id=row["id"],
            title=row["title"],
            code=row["code"],
            discount=row.get("discount") or "",
            valid_until=row["valid_until"],
            starts_on=row.get("starts_on") or None,
            type=row["type"],
            status=row.get("status") or None,
            usage_count=row.get("usage_count") or 0,
        )


ENTITY_MODELS: dict[EntityType, type[CatalogEntity]] = {
    EntityType.RESTAURANT: Restaurant,
    EntityType.CATEGORY: Category,
    EntityType.MENU_ITEM: MenuItem,
    EntityType.OFFER: Offer,
}
