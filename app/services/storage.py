"""S3 image storage: direct and presigned uploads, deletes, signed read URLs."""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote, urlsplit

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from app.schemas.upload import PresignedUploadResponse

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Signed read URLs handed out for private objects.
READ_URL_EXPIRES_SEC = 3600
_WHITESPACE = re.compile(r"\s+")


class StorageError(Exception):
    """Raised when an S3 call fails or an image URL does not belong to the bucket."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class ImageFile:
    """An image selected for upload."""

    file_name: str
    content_type: str
    data: bytes


ProgressCallback = Callable[[int, int], None]


class ObjectStorage:
    """
    Thin wrapper over a boto3 S3 client bound to one bucket.

    Keys live under `<key_prefix>/`; public URLs use the virtual-hosted style
    `https://<bucket>.s3.<region>.amazonaws.com/<key>`.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        region: str,
        key_prefix: str = "car-images",
        presign_expires: int = 3600,
        max_workers: int = 4,
    ) -> None:
        self._client = client
        self.bucket = bucket
        self.region = region
        self.key_prefix = key_prefix
        self.presign_expires = presign_expires
        self.max_workers = max_workers

    def build_key(self, file_name: str) -> str:
        """Unique object key for a file name: lowercased, whitespace collapsed to '-'."""
        slug = _WHITESPACE.sub("-", file_name.strip()).lower()
        unique = f"{uuid.uuid4()}-{slug}"
        return f"{self.key_prefix}/{unique}" if self.key_prefix else unique

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> str:
        """
        Extract the object key from a public or signed URL of this bucket.

        Raises StorageError for URLs that point elsewhere.
        """
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        path = unquote(parts.path).lstrip("/")
        if host.startswith(f"{self.bucket.lower()}.s3"):
            key = path
        elif host.startswith("s3") and path.startswith(f"{self.bucket}/"):
            # Path-style URL: https://s3.<region>.amazonaws.com/<bucket>/<key>
            key = path[len(self.bucket) + 1:]
        else:
            raise StorageError(f"URL does not belong to bucket {self.bucket}: {url}")
        if not key:
            raise StorageError(f"URL has no object key: {url}")
        return key

    def create_presigned_upload(
        self, file_name: str, content_type: str
    ) -> PresignedUploadResponse:
        """Issue a presigned PUT URL for a direct client upload."""
        key = self.build_key(file_name)
        try:
            presigned_url = self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=self.presign_expires,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("Failed to generate upload URL", cause=e) from e
        return PresignedUploadResponse(
            presigned_url=presigned_url,
            public_url=self.public_url(key),
            key=key,
        )

    def upload_file(self, image: ImageFile) -> str:
        """Store one image and return its public URL."""
        key = self.build_key(image.file_name)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=image.data,
                ContentType=image.content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Image upload failed", extra={"key": key, "error": str(e)})
            raise StorageError("Failed to upload image", cause=e) from e
        return self.public_url(key)

    def upload_files(
        self,
        images: Sequence[ImageFile],
        on_progress: ProgressCallback | None = None,
    ) -> list[str]:
        """
        Upload images in parallel and return their URLs in input order.

        `on_progress(done, total)` is called after each completed upload.
        If any upload fails, the images that did upload are deleted and the
        first failure (in input order) is raised once all uploads settle.
        """
        if not images:
            return []
        total = len(images)
        done = 0
        with ThreadPoolExecutor(max_workers=min(self.max_workers, total)) as pool:
            futures = [pool.submit(self.upload_file, image) for image in images]
            for future in as_completed(futures):
                if future.exception() is None:
                    done += 1
                    if on_progress is not None:
                        on_progress(done, total)

        failures = [f.exception() for f in futures if f.exception() is not None]
        urls = [f.result() for f in futures if f.exception() is None]
        if failures:
            for url in urls:
                try:
                    self.delete_file(url)
                except StorageError as e:
                    logger.warning("Orphaned upload not removed", extra={"url": url, "error": e.message})
            raise failures[0]
        return urls

    def delete_file(self, url: str) -> None:
        """Delete the object behind a stored image URL."""
        key = self.key_from_url(url)
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError("Failed to delete image", cause=e) from e

    def get_signed_url(self, key: str, expires_in: int = READ_URL_EXPIRES_SEC) -> str:
        """Time-limited GET URL for a private object."""
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("Failed to generate image URL", cause=e) from e

    def check_bucket(self) -> bool:
        """True if the bucket is reachable with the configured credentials."""
        try:
            self._client.head_bucket(Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning("Bucket check failed: %s", e)
            return False


def build_storage(settings: Settings) -> ObjectStorage:
    """Create the S3 client and storage wrapper from settings."""
    secret = settings.AWS_SECRET_ACCESS_KEY
    client = boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=secret.get_secret_value() if secret is not None else None,
    )
    return ObjectStorage(
        client,
        bucket=settings.AWS_S3_BUCKET_NAME,
        region=settings.AWS_REGION,
        key_prefix=settings.S3_KEY_PREFIX,
        presign_expires=settings.S3_PRESIGNED_URL_EXPIRES_SEC,
        max_workers=settings.S3_UPLOAD_MAX_WORKERS,
    )


def get_storage(request: Request) -> ObjectStorage:
    """Dependency that returns the storage wrapper created at startup."""
    return request.app.state.storage
