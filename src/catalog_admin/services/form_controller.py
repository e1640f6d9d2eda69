"""Staged editing of a single catalog entity.

One schema-driven controller serves every entity type. A schema lists the
editable fields with their coercion kind and default, the required-field
rules in evaluation order, the image field (if any) and the draft model the
validated values are turned into.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, cast

import pydantic

from catalog_admin.errors import CatalogError, FileTooLarge, InvalidFileType, UploadError
from catalog_admin.errors import ValidationError as CatalogValidationError
from catalog_admin.models.catalog_models import (
    ALLERGENS,
    DEFAULT_RATING,
    CatalogEntity,
    EntityType,
    OfferType,
    SpiceLevel,
)
from catalog_admin.models.form_models import DRAFT_MODELS, Draft
from catalog_admin.observability import traced
from catalog_admin.observability.metrics import record_validation_rejection
from catalog_admin.services.asset_uploader import AssetUploader, ImageFile, PreviewHandle

logger = logging.getLogger(__name__)

TRUTHY = {"on", "true", "yes", "1"}


class FieldKind(str, Enum):
    """How raw input for a field is coerced."""

    TEXT = "text"
    DECIMAL = "decimal"  # invalid input becomes 0
    INTEGER = "integer"  # invalid input becomes 0
    RATING = "rating"  # invalid input becomes None
    BOOLEAN = "boolean"
    CHOICE = "choice"
    SET = "set"
    DATE = "date"
    REFERENCE = "reference"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.TEXT
    default: Any = ""


Rule = Callable[["CatalogFormController"], bool]


@dataclass(frozen=True)
class FormSchema:
    """Editable fields and validation rules for one entity type."""

    entity_type: EntityType
    fields: tuple[FieldSpec, ...]
    rules: tuple[tuple[Rule, str], ...]
    image_field: str | None = None
    vocabularies: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def spec(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"{self.entity_type.label} has no field {name!r}")


def _filled(name: str) -> Rule:
    return lambda form: bool(str(form.values.get(name) or "").strip())


def _has_image(form: "CatalogFormController") -> bool:
    return form.staged_image is not None or bool(form.authoritative_image)


SCHEMAS: dict[EntityType, FormSchema] = {
    EntityType.RESTAURANT: FormSchema(
        entity_type=EntityType.RESTAURANT,
        fields=(
            FieldSpec("name"),
            FieldSpec("description"),
            FieldSpec("image"),
            FieldSpec("opening_hours"),
            FieldSpec("category", FieldKind.CHOICE, None),
            FieldSpec("price_range", FieldKind.CHOICE, None),
            FieldSpec("tags", FieldKind.SET, ()),
            FieldSpec("rating", FieldKind.RATING, DEFAULT_RATING),
            FieldSpec("featured", FieldKind.BOOLEAN, False),
            FieldSpec("distance"),
            FieldSpec("estimated_time"),
        ),
        rules=(
            (_filled("name"), "Restaurant name is required"),
            (_filled("description"), "Restaurant description is required"),
            (_has_image, "Please upload an image"),
        ),
        image_field="image",
    ),
    EntityType.CATEGORY: FormSchema(
        entity_type=EntityType.CATEGORY,
        fields=(
            FieldSpec("restaurant_id", FieldKind.REFERENCE, None),
            FieldSpec("name"),
            FieldSpec("description"),
            FieldSpec("display_order", FieldKind.INTEGER, 0),
        ),
        rules=((_filled("name"), "Category name is required"),),
    ),
    EntityType.MENU_ITEM: FormSchema(
        entity_type=EntityType.MENU_ITEM,
        fields=(
            FieldSpec("restaurant_id", FieldKind.REFERENCE, None),
            FieldSpec("category_id", FieldKind.REFERENCE, None),
            FieldSpec("name"),
            FieldSpec("description"),
            FieldSpec("price", FieldKind.DECIMAL, Decimal("0")),
            FieldSpec("image_url"),
            FieldSpec("is_available", FieldKind.BOOLEAN, True),
            FieldSpec("preparation_time"),
            FieldSpec("allergens", FieldKind.SET, ()),
            FieldSpec("spicy_level", FieldKind.CHOICE, SpiceLevel.NONE.value),
            FieldSpec("is_vegetarian", FieldKind.BOOLEAN, False),
            FieldSpec("is_vegan", FieldKind.BOOLEAN, False),
        ),
        rules=(
            (_filled("name"), "Menu item name is required"),
            (lambda form: form.values["price"] > 0, "Price must be greater than zero"),
        ),
        image_field="image_url",
        vocabularies={"allergens": ALLERGENS},
    ),
    EntityType.OFFER: FormSchema(
        entity_type=EntityType.OFFER,
        fields=(
            FieldSpec("title"),
            FieldSpec("code"),
            FieldSpec("discount"),
            FieldSpec("valid_until", FieldKind.DATE, None),
            FieldSpec("starts_on", FieldKind.DATE, None),
            FieldSpec("type", FieldKind.CHOICE, OfferType.NEW_USER.value),
            FieldSpec("status", FieldKind.CHOICE, None),
        ),
        rules=(
            (_filled("title"), "Offer title is required"),
            (_filled("code"), "Offer code is required"),
            (_filled("valid_until"), "Offer validity date is required"),
        ),
    ),
}


def coerce(kind: FieldKind, raw: Any) -> Any:
    """Coerce raw form input according to a field kind."""
    if kind is FieldKind.TEXT:
        return "" if raw is None else str(raw)
    if kind is FieldKind.DECIMAL:
        return _parse_decimal(raw) or Decimal("0")
    if kind is FieldKind.INTEGER:
        number = _parse_decimal(raw)
        return int(number) if number is not None else 0
    if kind is FieldKind.RATING:
        # zero counts as unset so the repository applies its default
        return _parse_decimal(raw) or None
    if kind is FieldKind.BOOLEAN:
        if isinstance(raw, str):
            return raw.strip().lower() in TRUTHY
        return bool(raw)
    if kind is FieldKind.SET:
        if isinstance(raw, str):
            return [raw] if raw else []
        return list(dict.fromkeys(raw or ()))
    if raw is None or raw == "":
        return None
    if kind is FieldKind.DATE:
        return raw
    if isinstance(raw, Enum):
        return raw.value
    return str(raw)


def _parse_decimal(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _describe(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "value"
    return f"Invalid {location.replace('_', ' ')}: {first['msg']}"


@dataclass
class FormSubmission:
    """Outcome of submitting a staged form.

    Attributes:
        success: Whether a validated payload was produced
        draft: The validated payload on success
        error_message: Single human-readable reason on failure
        error: The underlying catalog error on failure
    """

    success: bool
    draft: Draft | None = None
    error_message: str | None = None
    error: CatalogError | None = None


class CatalogFormController:
    """Stages one entity's editable fields and produces a validated draft.

    When editing, every field starts from the persisted entity; when creating,
    from the schema defaults plus any context values (e.g. the restaurant a
    category is added to). Images are staged locally and only uploaded during
    submit, after every validation rule has passed.
    """

    def __init__(
        self,
        entity_type: EntityType,
        uploader: AssetUploader,
        entity: CatalogEntity | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            entity_type: Type of entity being edited
            uploader: Uploader used to stage and commit images
            entity: Persisted entity to edit, None to create a new one
            context: Field values fixed by the caller, applied over defaults
        """
        self.schema = SCHEMAS[entity_type]
        self.uploader = uploader
        self.entity_id = entity.id if entity is not None else None
        self.staged_image: PreviewHandle | None = None
        self.is_submitting = False
        self.is_closed = False

        if entity is not None:
            row = entity.to_row()  # type: ignore[attr-defined]
            self.values = {
                spec.name: coerce(spec.kind, row.get(spec.name, spec.default))
                for spec in self.schema.fields
            }
            # the row form of rating is a float; keep the entity's exact Decimal
            if "rating" in self.values:
                self.values["rating"] = getattr(entity, "rating", None) or None
        else:
            self.values = {
                spec.name: coerce(spec.kind, spec.default) for spec in self.schema.fields
            }
            if "rating" in self.values:
                self.values["rating"] = DEFAULT_RATING

        for name, value in (context or {}).items():
            self.set_field(name, value)

        self.image_preview = self.authoritative_image

    @property
    def entity_type(self) -> EntityType:
        return self.schema.entity_type

    @property
    def is_editing(self) -> bool:
        return self.entity_id is not None

    @property
    def can_submit(self) -> bool:
        """Whether the submit affordance should be enabled."""
        return not self.is_submitting and not self.is_closed

    @property
    def authoritative_image(self) -> str:
        """The persisted image URL; previews are never authoritative."""
        if self.schema.image_field is None:
            return ""
        return self.values.get(self.schema.image_field) or ""

    def set_field(self, name: str, raw: Any) -> None:
        """Set one field from raw input, coercing it by the field's kind."""
        spec = self.schema.spec(name)
        self.values[name] = coerce(spec.kind, raw)

    def toggle(self, name: str, value: str) -> None:
        """Add a value to a set field, or remove it if already selected.

        Raises:
            ValueError: If the field has a fixed vocabulary that excludes value
        """
        spec = self.schema.spec(name)
        if spec.kind is not FieldKind.SET:
            raise ValueError(f"{name} is not a selectable set")
        vocabulary = self.schema.vocabularies.get(name)
        if vocabulary is not None and value not in vocabulary:
            raise ValueError(f"{value!r} is not a valid {name} value")

        selected = self.values[name]
        if value in selected:
            self.values[name] = [v for v in selected if v != value]
        else:
            self.values[name] = [*selected, value]

    def attach_image(self, file: ImageFile) -> str | None:
        """Stage an image for upload on submit.

        A rejected file leaves the current preview and staged image untouched.

        Returns:
            None when staged, otherwise the rejection reason
        """
        if self.schema.image_field is None:
            return f"A {self.entity_type.label} has no image"
        try:
            handle = self.uploader.stage(file)
        except (FileTooLarge, InvalidFileType) as e:
            logger.info(f"Rejected image {file.filename}: {e.message}")
            return e.message

        self.staged_image = handle
        self.image_preview = handle.preview_url
        return None

    def clear_image(self) -> None:
        """Drop the staged image and the current image reference."""
        self.staged_image = None
        if self.schema.image_field is not None:
            self.values[self.schema.image_field] = ""
        self.image_preview = ""

    def cancel(self) -> None:
        """Discard all staged edits, including a staged image."""
        self.staged_image = None
        self.image_preview = ""
        self.is_closed = True

    def validate(self) -> str | None:
        """Evaluate the required-field rules in order.

        Returns:
            The first failing rule's message, None if every rule passes
        """
        for rule, message in self.schema.rules:
            if not rule(self):
                return message
        return None

    def _build_draft(self) -> Draft:
        model = DRAFT_MODELS[self.entity_type]
        try:
            return model(**self.values)
        except pydantic.ValidationError as e:
            raise CatalogValidationError(_describe(e)) from e

    def _reject(self, error: CatalogError) -> FormSubmission:
        return FormSubmission(success=False, error_message=error.message, error=error)

    @traced("form.submit")
    async def submit(self) -> FormSubmission:
        """Validate the staged values and produce a draft.

        If an image is staged it is committed before the draft is returned;
        the upload always completes before the payload is handed off.

        Returns:
            FormSubmission with the draft, or the single failure reason
        """
        if self.is_closed:
            return self._reject(CatalogValidationError("This form has been closed"))
        if self.is_submitting:
            return self._reject(CatalogValidationError("Submission already in progress"))

        message = self.validate()
        if message is not None:
            record_validation_rejection(self.entity_type.value)
            logger.info(f"Rejected {self.entity_type.label} submission: {message}")
            return self._reject(CatalogValidationError(message))

        try:
            draft = self._build_draft()
        except CatalogValidationError as e:
            record_validation_rejection(self.entity_type.value)
            logger.info(f"Rejected {self.entity_type.label} submission: {e.message}")
            return self._reject(e)

        if self.staged_image is None:
            return FormSubmission(success=True, draft=draft)

        self.is_submitting = True
        try:
            url = await self.uploader.commit(self.staged_image, self.entity_type)
        except UploadError as e:
            logger.error(f"Image upload failed for {self.entity_type.label}: {e.cause}")
            return self._reject(e)
        finally:
            self.is_submitting = False

        image_field = cast(str, self.schema.image_field)
        self.values[image_field] = url
        self.staged_image = None
        self.image_preview = url
        return FormSubmission(success=True, draft=draft.model_copy(update={image_field: url}))
