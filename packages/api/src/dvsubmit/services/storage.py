# This project was developed with assistance from AI tools.
"""S3-compatible object storage for applicant photos.

Supabase Storage exposes an S3 endpoint, so a plain boto3 client works
against it (and against MinIO locally). The synchronous client runs in the
default thread-pool executor. One instance is built in the app lifespan and
reached through the ``get_storage`` dependency.
"""

import asyncio
import logging
from datetime import UTC, datetime
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from fastapi import Request

from ..core.config import Settings

logger = logging.getLogger(__name__)

PHOTO_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
}


class StorageService:
    """Thin wrapper around a boto3 S3 client."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str = "us-east-1",
        *,
        ensure_bucket: bool = True,
    ):
        self._bucket = bucket
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
        )
        if ensure_bucket:
            self._ensure_bucket()

    @classmethod
    def from_settings(cls, cfg: Settings) -> "StorageService":
        service = cls(
            endpoint=cfg.S3_ENDPOINT,
            access_key=cfg.S3_ACCESS_KEY,
            secret_key=cfg.S3_SECRET_KEY,
            bucket=cfg.S3_BUCKET,
            region=cfg.S3_REGION,
        )
        logger.info("StorageService initialised (bucket=%s)", cfg.S3_BUCKET)
        return service

    def _ensure_bucket(self) -> None:
        """Create the bucket if it doesn't already exist (dev convenience)."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", self._bucket)
            self._client.create_bucket(Bucket=self._bucket)

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def upload_file(self, file_data: bytes, object_key: str, content_type: str) -> str:
        """Upload bytes and return the object key."""
        await self._run(
            self._client.put_object,
            Bucket=self._bucket,
            Key=object_key,
            Body=file_data,
            ContentType=content_type,
        )
        return object_key

    async def download_file(self, object_key: str) -> bytes:
        response = await self._run(self._client.get_object, Bucket=self._bucket, Key=object_key)
        return response["Body"].read()

    async def get_download_url(self, object_key: str, expires_in: int = 3600) -> str:
        """Return a presigned GET URL for the given object key."""
        return await self._run(
            self._client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self._bucket, "Key": object_key},
            ExpiresIn=expires_in,
        )

    async def delete_file(self, object_key: str) -> None:
        await self._run(self._client.delete_object, Bucket=self._bucket, Key=object_key)

    @staticmethod
    def build_photo_key(
        user_id: int,
        application_id: int | None,
        content_type: str,
        *,
        now: datetime | None = None,
    ) -> str:
        """Build ``{user_id}/{application_id|unassigned}/photo_{millis}.{ext}``.

        Keys never include client-supplied filenames, so there is nothing to
        traverse with.
        """
        stamp = int((now or datetime.now(UTC)).timestamp() * 1000)
        folder = application_id if application_id is not None else "unassigned"
        return f"{user_id}/{folder}/photo_{stamp}.{PHOTO_EXTENSIONS[content_type]}"


def get_storage(request: Request) -> StorageService:
    """FastAPI dependency: the StorageService built in the app lifespan."""
    service = getattr(request.app.state, "storage", None)
    if service is None:
        raise RuntimeError("StorageService not initialised -- app lifespan has not run")
    return service
