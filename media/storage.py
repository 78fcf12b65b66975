"""Object storage for round photos and avatars (Supabase Storage REST API)."""

import logging
import re
import time
from pathlib import PurePosixPath
from typing import Optional, Protocol, Sequence
from urllib.parse import quote
from uuid import uuid4

import httpx

from media.exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageBucket(Protocol):
    """What the upload flows need from a bucket."""

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        *,
        upsert: bool = False,
        cache_control: int = 3600,
    ) -> str:
        ...

    async def remove(self, paths: Sequence[str]) -> None:
        ...

    def public_url(self, path: str) -> str:
        ...


def make_round_photo_path(user_id: str, filename: str, now: Optional[float] = None) -> str:
    """`{user_id}/{epoch_ms}.{ext}`."""
    ext = PurePosixPath(filename or "").suffix.lstrip(".").lower() or "jpg"
    millis = int((now if now is not None else time.time()) * 1000)
    return f"{user_id}/{millis}.{ext}"


def make_avatar_path(user_id: str) -> str:
    """`{user_id}/{uuid}.jpg`; a fresh name per upload so CDN caches never serve the old face."""
    return f"{user_id}/{uuid4()}.jpg"


def extract_path_from_url(url: Optional[str], bucket: str) -> Optional[str]:
    """Object path inside `bucket` from one of its public URLs."""
    if not url:
        return None
    match = re.search(rf"/object/public/{re.escape(bucket)}/([^?#]+)", url)
    return match.group(1) if match else None


class SupabaseStorage:
    """One bucket, accessed with the service key over an injected AsyncClient."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        service_key: str,
        bucket: str,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self.bucket = bucket

    def _headers(self) -> dict:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
        }

    def _object_url(self, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/{self.bucket}/{quote(path)}"

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        *,
        upsert: bool = False,
        cache_control: int = 3600,
    ) -> str:
        """Store `data` at `path` and return its public URL."""
        headers = self._headers()
        headers.update({
            "Content-Type": content_type,
            "cache-control": f"max-age={cache_control}",
            "x-upsert": "true" if upsert else "false",
        })
        try:
            response = await self._client.post(self._object_url(path), content=data, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("Upload to %s/%s failed (%s)", self.bucket, path, exc)
            raise StorageError(f"Upload failed: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Upload to %s/%s failed (%s)", self.bucket, path, exc)
            raise StorageError(f"Upload failed: {exc}") from exc
        logger.info("Uploaded %d bytes to %s/%s", len(data), self.bucket, path)
        return self.public_url(path)

    async def remove(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        try:
            response = await self._client.request(
                "DELETE",
                f"{self._base_url}/storage/v1/object/{self.bucket}",
                json={"prefixes": list(paths)},
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Removing %s from %s failed (%s)", list(paths), self.bucket, exc)
            raise StorageError(f"Remove failed: {exc}") from exc
