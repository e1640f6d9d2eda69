"""Error taxonomy for the catalog core.

Every error carries a user-facing ``message``. Remote errors also keep the
underlying ``cause`` for diagnostics; callers should log it and show only the
message.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""

    default_message = "Catalog operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    """A staged entity failed a local validation rule."""

    default_message = "Please fill in all required fields"


class FileTooLarge(CatalogError):
    """A staged image exceeds the upload size limit."""

    default_message = "Image size should be less than 5MB"


class InvalidFileType(CatalogError):
    """A staged file is not an image."""

    default_message = "Please upload an image file"


class MissingCategoryError(CatalogError):
    """A menu item was created for a restaurant that has no categories."""

    default_message = "Please add a category before adding menu items"


class NotFoundError(CatalogError):
    """The entity no longer exists in the remote store."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} no longer exists")


class ConflictError(CatalogError):
    """A write conflicts with existing data, e.g. a duplicate offer code."""

    default_message = "An entry with the same values already exists"


class StoreError(Exception):
    """Failure raised by a catalog or asset store implementation.

    Attributes:
        status_code: HTTP status reported by the store, if any
        cause: The original exception
    """

    def __init__(
        self, message: str, status_code: int | None = None, cause: BaseException | None = None
    ) -> None:
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class RemoteError(CatalogError):
    """A remote catalog store call failed."""

    default_message = "Remote catalog store request failed"

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class UploadError(RemoteError):
    """An image upload to the asset store failed."""

    default_message = "Failed to upload image"
