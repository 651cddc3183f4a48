"""MinIO-backed blob store for published site artifacts."""

import asyncio
import io
import logging
from typing import Optional
from urllib.parse import quote

from minio import Minio

from pagewright.config import Settings

logger = logging.getLogger(__name__)


def public_object_url(public_base_url: str, bucket: str, path: str) -> str:
    """Public URL of *path* in *bucket*; each path segment is percent-encoded."""
    encoded = "/".join(quote(segment, safe="") for segment in path.split("/"))
    return f"{public_base_url.rstrip('/')}/{bucket}/{encoded}"


class MinioBlobStore:
    """Upload objects with the synchronous MinIO client on a worker thread."""

    def __init__(self, client: Minio, bucket: str, public_base_url: str):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url
        self._bucket_checked = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "MinioBlobStore":
        missing = [
            name
            for name, value in (
                ("PAGEWRIGHT_MINIO_ACCESS_KEY", settings.minio_access_key),
                ("PAGEWRIGHT_MINIO_SECRET_KEY", settings.minio_secret_key),
            )
            if not value
        ]
        if missing:
            raise RuntimeError("Missing required MinIO settings: " + ", ".join(missing))

        client = Minio(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        return cls(client, settings.minio_bucket, settings.public_base_url)

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(bucket_name=self.bucket):
            logger.info("Creating bucket %s", self.bucket)
            self.client.make_bucket(bucket_name=self.bucket)
        self._bucket_checked = True

    def _put(self, path: str, data: bytes, content_type: str, cache_control: Optional[str]) -> None:
        self._ensure_bucket()
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=path,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
            metadata={"Cache-Control": cache_control} if cache_control else None,
        )

    async def upload(
        self, path: str, data: bytes, content_type: str, cache_control: Optional[str] = None
    ) -> str:
        await asyncio.to_thread(self._put, path, data, content_type, cache_control)
        logger.debug("Uploaded %s (%d bytes)", path, len(data))
        return public_object_url(self.public_base_url, self.bucket, path)
