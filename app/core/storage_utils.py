# app/core/storage_utils.py
from functools import lru_cache
from typing import Protocol

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin


class ObjectStorage(Protocol):
    """Blob store holding uploaded images and videos."""

    def upload(self, key: str, file_bytes: bytes, content_type: str) -> str:
        """Store bytes under `key` and return the public URL."""
        ...

    def delete(self, key: str) -> None:
        ...

    def key_from_url(self, url: str) -> str | None:
        """Object key for a public URL of this store, else None."""
        ...


class SupabaseStorage:
    """
    Supabase Storage bucket.

    The client is created on first use, so a missing service key only
    fails the request that needs storage.
    """

    def __init__(self, bucket: str):
        self.bucket = bucket

    def _bucket(self):
        return supabase_admin().storage.from_(self.bucket)

    def upload(self, key: str, file_bytes: bytes, content_type: str) -> str:
        """
        Upload raw bytes and return the public URL.

        An existing object at the same key is overwritten ('upsert').
        """
        bucket = self._bucket()
        bucket.upload(key, file_bytes, {"content-type": content_type, "upsert": "true"})
        return bucket.get_public_url(key)

    def delete(self, key: str) -> None:
        # Supabase Python client expects a list of paths.
        self._bucket().remove([key])

    def key_from_url(self, url: str) -> str | None:
        """
        Given a public URL, extract the object key relative to the bucket.

        Example:
            https://<proj>.supabase.co/storage/v1/object/public/assets/uploads/images/1_a.png
            -> 'uploads/images/1_a.png'
        """
        marker = f"/storage/v1/object/public/{self.bucket}/"
        idx = url.find(marker)
        if idx == -1:
            return None
        key = url[idx + len(marker) :].split("?", 1)[0]
        return key or None


@lru_cache
def get_storage() -> ObjectStorage:
    """FastAPI dependency returning the configured media store."""
    return SupabaseStorage(get_settings().STORAGE_BUCKET)
