# app/services/upload_service.py
import logging
from pathlib import PurePosixPath
from typing import Callable

from fastapi import HTTPException, status

from app.core.config import get_settings
from app.core.storage_utils import ObjectStorage
from app.core.timestamps import now_ms
from app.schemas.upload import UploadRead

logger = logging.getLogger(__name__)

UPLOAD_KINDS: tuple[str, ...] = ("image", "video")


class UploadService:
    """
    Media uploads for thumbnails, OG images, gallery images and videos.

    Responsibilities:
      - content-type check per kind (image/*, video/*)
      - size limits (413)
      - object key layout: "{path}/{kind}s/{epoch_ms}_{filename}"
      - delete by key or by public URL
    """

    def __init__(self, storage: ObjectStorage, clock: Callable[[], int] = now_ms):
        self.storage = storage
        self.clock = clock

    @staticmethod
    def _validate(kind: str, content_type: str, file_bytes: bytes) -> None:
        if kind not in UPLOAD_KINDS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or missing type. Allowed: image, video.",
            )

        if not content_type.startswith(f"{kind}/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid file type. Expected an {kind} file.",
            )

        if not file_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty file",
            )

        settings = get_settings()
        limit = settings.MAX_IMAGE_BYTES if kind == "image" else settings.MAX_VIDEO_BYTES
        if len(file_bytes) > limit:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large (max {limit // (1024 * 1024)}MB).",
            )

    def build_key(self, kind: str, filename: str, path: str | None = None) -> str:
        prefix = (path or get_settings().STORAGE_UPLOAD_PREFIX).strip("/")
        name = PurePosixPath(filename.replace("\\", "/")).name or "file"
        return f"{prefix}/{kind}s/{self.clock()}_{name}"

    def upload(
        self,
        kind: str,
        filename: str,
        content_type: str,
        file_bytes: bytes,
        path: str | None = None,
    ) -> UploadRead:
        self._validate(kind, content_type, file_bytes)
        key = self.build_key(kind, filename, path)

        try:
            url = self.storage.upload(key, file_bytes, content_type)
        except RuntimeError as exc:
            logger.error("Storage not configured: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Storage is not configured",
            )
        except Exception:
            logger.exception("Uploading %s failed", key)
            raise

        logger.info("Uploaded %s (%d bytes)", key, len(file_bytes))
        return UploadRead(url=url, key=key)

    def delete(self, key: str | None = None, url: str | None = None) -> str:
        """Delete an object given its key, or a public URL of this store."""
        object_key = key
        if not object_key and url:
            object_key = self.storage.key_from_url(url)

        if not object_key:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing key or url",
            )

        try:
            self.storage.delete(object_key)
        except RuntimeError as exc:
            logger.error("Storage not configured: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Storage is not configured",
            )
        except Exception:
            logger.exception("Deleting %s failed", object_key)
            raise

        logger.info("Deleted %s", object_key)
        return object_key
