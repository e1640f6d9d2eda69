"""Validated payload models produced by the catalog form controller.

A draft carries every persisted field of an entity except the store-assigned
identifier and timestamps. Drafts are what the repositories accept for create
and update.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_admin.models.catalog_models import (
    ALLERGENS,
    EntityType,
    OfferStatus,
    OfferType,
    PriceTier,
    RestaurantCategory,
    SpiceLevel,
)


class Draft(BaseModel):
    """Base class for entity drafts."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    entity_type: EntityType

    def to_row(self) -> dict[str, Any]:
        """Convert to a store row without identifier.

        Returns:
            dict: Store-compatible representation
        """
        return self.model_dump(mode="json", exclude={"entity_type"})


class RestaurantDraft(Draft):
    """Restaurant payload."""

    entity_type: EntityType = EntityType.RESTAURANT
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    image: str = Field(default="", description="Durable public URL, never a preview")
    opening_hours: str = ""
    category: RestaurantCategory | None = None
    price_range: PriceTier | None = None
    tags: list[str] = Field(default_factory=list)
    # None lets the repository apply its default rating
    rating: Decimal | None = Field(None, ge=0, le=5)
    featured: bool = False
    distance: str = ""
    estimated_time: str = ""

    @field_validator("image")
    @classmethod
    def reject_preview(cls, v: str) -> str:
        """A data URL preview is never an authoritative image reference."""
        if v.startswith("data:"):
            raise ValueError("image must be an uploaded URL, not a preview")
        return v

    def to_row(self) -> dict[str, Any]:
        row = super().to_row()
        if self.rating is not None:
            row["rating"] = float(self.rating)
        return row


class CategoryDraft(Draft):
    """Menu category payload."""

    entity_type: EntityType = EntityType.CATEGORY
    restaurant_id: str | None = None
    name: str = Field(..., min_length=1)
    description: str = ""
    display_order: int = 0


class MenuItemDraft(Draft):
    """Menu item payload."""

    entity_type: EntityType = EntityType.MENU_ITEM
    restaurant_id: str | None = None
    category_id: str | None = None
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., gt=0)
    image_url: str = ""
    is_available: bool = True
    preparation_time: str = ""
    allergens: list[str] = Field(default_factory=list)
    spicy_level: SpiceLevel = SpiceLevel.NONE
    is_vegetarian: bool = False
    is_vegan: bool = False

    @field_validator("allergens")
    @classmethod
    def validate_allergens(cls, v: list[str]) -> list[str]:
        unknown = [a for a in v if a not in ALLERGENS]
        if unknown:
            raise ValueError(f"Unknown allergens: {', '.join(unknown)}")
        return v

    @field_validator("image_url")
    @classmethod
    def reject_preview(cls, v: str) -> str:
        if v.startswith("data:"):
            raise ValueError("image_url must be an uploaded URL, not a preview")
        return v


class OfferDraft(Draft):
    """Promotional offer payload."""

    entity_type: EntityType = EntityType.OFFER
    title: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    discount: str = ""
    valid_until: date
    starts_on: date | None = None
    type: OfferType
    status: OfferStatus | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


DRAFT_MODELS: dict[EntityType, type[Draft]] = {
    EntityType.RESTAURANT: RestaurantDraft,
    EntityType.CATEGORY: CategoryDraft,
    EntityType.MENU_ITEM: MenuItemDraft,
    EntityType.OFFER: OfferDraft,
}
