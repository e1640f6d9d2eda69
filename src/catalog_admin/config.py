"""Environment configuration for the catalog core."""

import os
from dataclasses import dataclass

from catalog_admin.services.asset_uploader import MAX_IMAGE_BYTES


@dataclass(frozen=True)
class CatalogSettings:
    """Settings for the remote stores and uploads.

    Attributes:
        store_url: Base URL of the PostgREST catalog store
        store_api_key: API key for the catalog store
        store_timeout: Request timeout in seconds
        asset_region: Region of the S3 asset buckets
        asset_endpoint: Custom S3 endpoint (e.g. a local S3), None for AWS
        asset_public_base_url: Base URL serving uploaded assets, None for S3 URLs
        max_image_bytes: Largest accepted image upload
        log_level: Root logging level
    """

    store_url: str
    store_api_key: str
    store_timeout: float = 10.0
    asset_region: str = "us-east-1"
    asset_endpoint: str | None = None
    asset_public_base_url: str | None = None
    max_image_bytes: int = MAX_IMAGE_BYTES
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "CatalogSettings":
        """Read settings from environment variables.

        Raises:
            ValueError: If a required variable is missing or a number is malformed
        """
        store_url = os.getenv("CATALOG_STORE_URL")
        store_api_key = os.getenv("CATALOG_STORE_API_KEY")

        if not store_url or not store_api_key:
            raise ValueError(
                "CATALOG_STORE_URL and CATALOG_STORE_API_KEY must be set in environment"
            )

        return cls(
            store_url=store_url,
            store_api_key=store_api_key,
            store_timeout=float(os.getenv("CATALOG_STORE_TIMEOUT", "10")),
            asset_region=os.getenv("ASSET_STORE_REGION", "us-east-1"),
            asset_endpoint=os.getenv("ASSET_STORE_ENDPOINT") or None,
            asset_public_base_url=os.getenv("ASSET_PUBLIC_BASE_URL") or None,
            max_image_bytes=int(os.getenv("MAX_IMAGE_BYTES", str(MAX_IMAGE_BYTES))),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
