"""Image staging and upload for catalog entities."""

import base64
import logging
import time
import uuid
from dataclasses import dataclass

from catalog_admin.errors import FileTooLarge, InvalidFileType, StoreError, UploadError
from catalog_admin.models.catalog_models import EntityType
from catalog_admin.observability import traced
from catalog_admin.observability.metrics import record_upload
from catalog_admin.stores.base_store import AssetStore

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024

IMAGE_BUCKETS: dict[EntityType, str] = {
    EntityType.RESTAURANT: "restaurant-images",
    EntityType.MENU_ITEM: "menu-item-images",
}


@dataclass(frozen=True)
class ImageFile:
    """A binary file selected for upload.

    Attributes:
        filename: Original file name, used for the extension
        content_type: MIME type reported for the file
        content: Raw bytes
    """

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        if "." in self.filename:
            return self.filename.rsplit(".", 1)[1].lower()
        return self.content_type.split("/", 1)[-1].lower()


@dataclass(frozen=True)
class PreviewHandle:
    """A staged image and its local preview.

    The preview is a data URL built in memory. It is only for display and is
    never persisted on an entity.
    """

    file: ImageFile
    preview_url: str


class AssetUploader:
    """Validates images locally and commits them to the asset store."""

    def __init__(self, asset_store: AssetStore, max_bytes: int = MAX_IMAGE_BYTES) -> None:
        """Initialize the uploader.

        Args:
            asset_store: Store receiving committed uploads
            max_bytes: Largest accepted file size
        """
        self.asset_store = asset_store
        self.max_bytes = max_bytes

    def stage(self, file: ImageFile) -> PreviewHandle:
        """Validate a file and build its preview without any remote call.

        Args:
            file: Selected image file

        Returns:
            PreviewHandle holding the file and a data URL preview

        Raises:
            FileTooLarge: If the file exceeds the size limit
            InvalidFileType: If the MIME type is not an image type
        """
        if file.size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise FileTooLarge(f"Image size should be less than {limit_mb}MB")
        if not file.content_type.startswith("image/"):
            raise InvalidFileType()

        encoded = base64.b64encode(file.content).decode("ascii")
        return PreviewHandle(file=file, preview_url=f"data:{file.content_type};base64,{encoded}")

    @staticmethod
    def storage_key(file: ImageFile) -> str:
        """Build a collision-resistant key: millisecond timestamp, random suffix, extension."""
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}.{file.extension}"

    @traced("asset_uploader.commit")
    async def commit(self, handle: PreviewHandle, entity_type: EntityType) -> str:
        """Upload a staged image and return its public URL.

        Args:
            handle: Handle returned by stage()
            entity_type: Entity the image belongs to, selects the bucket

        Returns:
            Public URL of the uploaded image

        Raises:
            UploadError: If the asset store rejects or fails the upload
        """
        bucket = IMAGE_BUCKETS.get(entity_type)
        if bucket is None:
            raise ValueError(f"{entity_type.label} has no image bucket")

        key = self.storage_key(handle.file)
        try:
            path = await self.asset_store.upload(
                bucket, key, handle.file.content, handle.file.content_type
            )
        except StoreError as e:
            logger.error(f"Failed to upload image to {bucket}: {e}")
            raise UploadError(cause=e) from e

        if not path:
            raise UploadError("No path returned from upload")

        record_upload(bucket, handle.file.size)
        public_url = self.asset_store.get_public_url(bucket, path)
        logger.info(f"Uploaded image to {bucket}/{path}")
        return public_url
