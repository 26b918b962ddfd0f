from __future__ import annotations

import logging
import re
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.\-_]")


class MediaStorageConfigurationError(RuntimeError):
    pass


class MediaStorageError(RuntimeError):
    pass


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename or "upload")


def build_upload_key(*, user_id: str, project_id: str, filename: str, timestamp_ms: int) -> str:
    """Keys look like <user>/<project>/<epoch-ms>_<safe-name>."""
    return f"{user_id}/{project_id}/{timestamp_ms}_{sanitize_filename(filename)}"


class MediaStorage:
    """
    Thin wrapper around S3-compatible storage (Supabase Storage) for chat image uploads.
    """

    def __init__(self) -> None:
        if not settings.MEDIA_STORAGE_BUCKET:
            raise MediaStorageConfigurationError("MEDIA_STORAGE_BUCKET is required")
        if not settings.MEDIA_STORAGE_ENDPOINT:
            raise MediaStorageConfigurationError("MEDIA_STORAGE_ENDPOINT is required")
        if not settings.MEDIA_STORAGE_ACCESS_KEY or not settings.MEDIA_STORAGE_SECRET_KEY:
            raise MediaStorageConfigurationError(
                "MEDIA_STORAGE_ACCESS_KEY and MEDIA_STORAGE_SECRET_KEY are required"
            )

        addressing_style = "path" if settings.MEDIA_STORAGE_FORCE_PATH_STYLE else "auto"
        self.bucket = settings.MEDIA_STORAGE_BUCKET
        self.public_base_url = (settings.MEDIA_STORAGE_PUBLIC_BASE_URL or "").rstrip("/")

        session = boto3.session.Session()
        self.client = session.client(
            "s3",
            endpoint_url=settings.MEDIA_STORAGE_ENDPOINT,
            aws_access_key_id=settings.MEDIA_STORAGE_ACCESS_KEY,
            aws_secret_access_key=settings.MEDIA_STORAGE_SECRET_KEY,
            region_name=settings.MEDIA_STORAGE_REGION or "us-east-1",
            config=Config(
                s3={"addressing_style": addressing_style},
                signature_version="s3v4",
            ),
        )

    def upload_bytes(
        self,
        *,
        key: str,
        data: bytes,
        content_type: Optional[str],
        cache_control: Optional[str] = "max-age=3600",
    ) -> None:
        kwargs = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
        }
        if content_type:
            kwargs["ContentType"] = content_type
        if cache_control:
            kwargs["CacheControl"] = cache_control
        try:
            self.client.put_object(**kwargs)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Media upload failed", extra={"key": key, "bucket": self.bucket})
            raise MediaStorageError(f"Failed to upload file: {exc}") from exc

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{self.bucket}/{key}"
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=7 * 24 * 3600,
        )
