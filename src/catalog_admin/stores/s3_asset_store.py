"""Asset store backed by S3 buckets."""

import asyncio
import logging

from botocore.exceptions import ClientError
from mypy_boto3_s3.client import S3Client

from catalog_admin.errors import StoreError
from catalog_admin.stores.base_store import AssetStore

logger = logging.getLogger(__name__)

CACHE_CONTROL = "max-age=3600"


class S3AssetStore(AssetStore):
    """Uploads image assets to S3 and resolves their public URLs.

    Each entity type uses its own bucket. Existing keys are never overwritten.
    """

    def __init__(
        self, s3_client: S3Client, region: str = "us-east-1", public_base_url: str | None = None
    ) -> None:
        """Initialize the asset store.

        Args:
            s3_client: Boto3 S3 client
            region: Region used to build default public URLs
            public_base_url: Base URL serving bucket contents (e.g. a CDN or
                local S3 endpoint); the regional S3 URL is used when omitted
        """
        self.s3 = s3_client
        self.region = region
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _key_exists(self, bucket: str, path: str) -> bool:
        try:
            self.s3.head_object(Bucket=bucket, Key=path)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def _put(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        try:
            if self._key_exists(bucket, path):
                raise StoreError(f"Asset {bucket}/{path} already exists", status_code=409)

            self.s3.put_object(
                Bucket=bucket,
                Key=path,
                Body=content,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
            )
            return path

        except ClientError as e:
            logger.error(f"Failed to upload asset {bucket}/{path}: {e}")
            raise StoreError(f"Upload of {bucket}/{path} failed", cause=e) from e

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        # boto3 is blocking; keep the event loop free while the upload runs
        return await asyncio.to_thread(self._put, bucket, path, content, content_type)

    def get_public_url(self, bucket: str, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{bucket}/{path}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{path}"
