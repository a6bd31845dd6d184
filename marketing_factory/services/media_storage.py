from __future__ import annotations

import hashlib
import logging
from typing import Optional

import boto3
import httpx
from botocore.config import Config

from marketing_factory.config import settings

logger = logging.getLogger(__name__)

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"


class MediaStorageConfigError(RuntimeError):
    pass


def media_storage_configured() -> bool:
    return bool(
        settings.MEDIA_STORAGE_BUCKET
        and settings.MEDIA_STORAGE_ENDPOINT
        and settings.MEDIA_STORAGE_ACCESS_KEY
        and settings.MEDIA_STORAGE_SECRET_KEY
    )


class MediaStorage:
    """
    Thin wrapper around S3-compatible storage for generated media.

    Keys are grouped per project: <prefix>/<project_id>/<kind>/<sha256>.<ext>
    """

    def __init__(self) -> None:
        if not settings.MEDIA_STORAGE_BUCKET:
            raise MediaStorageConfigError("MEDIA_STORAGE_BUCKET is required")
        if not settings.MEDIA_STORAGE_ENDPOINT:
            raise MediaStorageConfigError("MEDIA_STORAGE_ENDPOINT is required")
        if not settings.MEDIA_STORAGE_ACCESS_KEY or not settings.MEDIA_STORAGE_SECRET_KEY:
            raise MediaStorageConfigError("MEDIA_STORAGE_ACCESS_KEY and MEDIA_STORAGE_SECRET_KEY are required")

        addressing_style = "path" if settings.MEDIA_STORAGE_FORCE_PATH_STYLE else "auto"
        self.bucket = settings.MEDIA_STORAGE_BUCKET
        self.prefix = (settings.MEDIA_STORAGE_PREFIX or "").strip("/")
        self.public_base_url = (settings.MEDIA_STORAGE_PUBLIC_BASE_URL or "").rstrip("/")
        self.presign_ttl = int(settings.MEDIA_STORAGE_PRESIGN_TTL_SECONDS or 900)

        session = boto3.session.Session()
        self.client = session.client(
            "s3",
            endpoint_url=settings.MEDIA_STORAGE_ENDPOINT,
            aws_access_key_id=settings.MEDIA_STORAGE_ACCESS_KEY,
            aws_secret_access_key=settings.MEDIA_STORAGE_SECRET_KEY,
            region_name=settings.MEDIA_STORAGE_REGION or "us-east-1",
            use_ssl=bool(settings.MEDIA_STORAGE_USE_SSL),
            config=Config(
                s3={"addressing_style": addressing_style},
                signature_version="s3v4",
            ),
        )

    def build_key(self, *, project_id: str, kind: str, data: bytes, ext: str) -> str:
        sha256 = hashlib.sha256(data).hexdigest()
        ext_clean = ext.lstrip(".") if ext else "bin"
        parts = [p for p in [self.prefix, str(project_id), kind] if p]
        return "/".join(parts + [f"{sha256}.{ext_clean}"])

    def upload_bytes(
        self,
        *,
        key: str,
        data: bytes,
        content_type: Optional[str],
        cache_control: Optional[str] = IMMUTABLE_CACHE_CONTROL,
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
        self.client.put_object(**kwargs)

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.presign_ttl,
        )

    def store(self, *, project_id: str, kind: str, data: bytes, content_type: str, ext: str) -> str:
        key = self.build_key(project_id=project_id, kind=kind, data=data, ext=ext)
        self.upload_bytes(key=key, data=data, content_type=content_type)
        logger.info("Stored media", extra={"key": key, "size_bytes": len(data), "kind": kind})
        return self.url_for(key)

    def mirror_url(self, *, project_id: str, kind: str, source_url: str, content_type: str, ext: str) -> str:
        """Copy a vendor-hosted file into our bucket; vendor URLs typically expire."""
        with httpx.Client(timeout=120, follow_redirects=True) as client:
            resp = client.get(source_url)
            resp.raise_for_status()
        return self.store(project_id=project_id, kind=kind, data=resp.content, content_type=content_type, ext=ext)
