"""Factory wiring the catalog core to its remote stores.

The presentation layer calls create_catalog_console() once and works with the
returned view model.
"""

import logging
from typing import Any

import boto3

from catalog_admin.config import CatalogSettings
from catalog_admin.observability import configure_logging, setup_observability
from catalog_admin.repositories.catalog_repositories import (
    CategoryRepository,
    MenuItemRepository,
    OfferRepository,
    RestaurantRepository,
)
from catalog_admin.services.asset_uploader import MAX_IMAGE_BYTES, AssetUploader
from catalog_admin.services.catalog_view_model import CatalogViewModel
from catalog_admin.stores.base_store import AssetStore, CatalogStore
from catalog_admin.stores.rest_store import RestCatalogStore
from catalog_admin.stores.s3_asset_store import S3AssetStore

logger = logging.getLogger(__name__)


def get_s3_client(settings: CatalogSettings) -> Any:
    """Create an S3 client for the configured region or local endpoint.

    Returns:
        Boto3 S3 client
    """
    if settings.asset_endpoint:
        logger.info(f"Using local S3 at {settings.asset_endpoint}")
        return boto3.client(
            "s3", endpoint_url=settings.asset_endpoint, region_name=settings.asset_region
        )

    logger.info(f"Using AWS S3 in region {settings.asset_region}")
    return boto3.client("s3", region_name=settings.asset_region)


def create_view_model(
    catalog_store: CatalogStore, asset_store: AssetStore, max_image_bytes: int | None = None
) -> CatalogViewModel:
    """Build repositories, uploader and view model over the given stores."""
    category_repository = CategoryRepository(catalog_store)
    uploader = AssetUploader(asset_store, max_bytes=max_image_bytes or MAX_IMAGE_BYTES)
    return CatalogViewModel(
        restaurant_repository=RestaurantRepository(catalog_store),
        category_repository=category_repository,
        menu_item_repository=MenuItemRepository(catalog_store, category_repository),
        offer_repository=OfferRepository(catalog_store),
        uploader=uploader,
    )


def create_catalog_console(settings: CatalogSettings | None = None) -> CatalogViewModel:
    """Create a view model wired to the remote catalog and asset stores.

    Args:
        settings: Explicit settings, read from the environment when omitted

    Returns:
        CatalogViewModel ready to load collections

    Raises:
        ValueError: If required configuration is missing
    """
    settings = settings or CatalogSettings.from_env()
    configure_logging(settings.log_level)
    setup_observability()

    catalog_store = RestCatalogStore(
        base_url=settings.store_url,
        api_key=settings.store_api_key,
        timeout=settings.store_timeout,
    )
    logger.info(f"Catalog store configured - URL: {settings.store_url}")

    asset_store = S3AssetStore(
        get_s3_client(settings),
        region=settings.asset_region,
        public_base_url=settings.asset_public_base_url,
    )

    view_model = create_view_model(catalog_store, asset_store, settings.max_image_bytes)
    logger.info("Catalog console initialized successfully")
    return view_model
