"""Object storage for wardrobe item pictures."""

from abc import ABC, abstractmethod
from functools import lru_cache

import boto3
from botocore.config import Config
from typing_extensions import override

from .settings import get_settings

PRESIGNED_URL_SECONDS = 7 * 24 * 60 * 60


class BlobStorageNotConfigured(RuntimeError):
    pass


class BlobStorage(ABC):
    """Stores image bytes under a key and hands out URLs for them."""

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str) -> None: ...

    @abstractmethod
    def get_url(self, key: str) -> str:
        """A URL the client can load the object from."""
        ...


class R2Storage(BlobStorage):
    """
    Cloudflare R2 bucket, through its S3-compatible API.

    If the bucket is exposed on a public domain, object URLs point there. Otherwise they
    are presigned and expire after a week.
    """

    def __init__(
        self,
        *,
        endpoint_url: str,
        access_key_id: str,
        secret_access_key: str,
        bucket: str,
        public_url: str | None = None,
    ):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/") if public_url else None
        self._s3 = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name="auto",
            config=Config(signature_version="s3v4"),
        )

    @override
    def upload(self, key: str, data: bytes, content_type: str) -> None:
        self._s3.put_object(
            Bucket=self.bucket, Key=key, Body=data, ContentType=content_type
        )

    @override
    def get_url(self, key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{key}"
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=PRESIGNED_URL_SECONDS,
        )


@lru_cache
def get_blob_storage() -> BlobStorage:
    """
    Get the process-wide blob storage. Use as a FastAPI dependency.

    Raises:
        BlobStorageNotConfigured: If the R2 endpoint or credentials are missing
    """
    settings = get_settings()
    if not (settings.R2_S3_URL and settings.R2_ACCESS_KEY_ID and settings.R2_SECRET_ACCESS_KEY):
        raise BlobStorageNotConfigured("R2 credentials are not configured")

    return R2Storage(
        endpoint_url=settings.R2_S3_URL,
        access_key_id=settings.R2_ACCESS_KEY_ID,
        secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        bucket=settings.R2_BUCKET,
        public_url=settings.R2_PUBLIC_URL,
    )
