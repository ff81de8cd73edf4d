# app/routers/uploads.py
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
    status,
)

from app.core.auth import require_admin
from app.core.storage_utils import ObjectStorage, get_storage
from app.schemas.upload import UploadDelete, UploadRead
from app.services.upload_service import UploadService

router = APIRouter(
    prefix="/uploads",
    tags=["Uploads"],
    dependencies=[Depends(require_admin)],
)


def get_upload_service(storage: ObjectStorage = Depends(get_storage)) -> UploadService:
    return UploadService(storage)


@router.post(
    "",
    response_model=UploadRead,
    summary="Upload an image or video",
)
def upload_file(
    file: UploadFile = File(...),
    type: str = Form(...),
    path: str | None = Form(default=None),
    service: UploadService = Depends(get_upload_service),
):
    """
    Upload one file.

    - `type` is "image" or "video"; the file's content type must match.
    - `path` is an optional key prefix (default "uploads").
    - Returns the public URL and the object key.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.upload(
        kind=type,
        filename=file.filename or "file",
        content_type=file.content_type,
        file_bytes=file_bytes,
        path=path,
    )


@router.delete(
    "",
    status_code=status.HTTP_200_OK,
    summary="Delete an uploaded file by key or public URL",
)
def delete_file(
    payload: UploadDelete,
    service: UploadService = Depends(get_upload_service),
) -> dict[str, str]:
    key = service.delete(key=payload.key, url=payload.url)
    return {"message": "File deleted successfully", "key": key}
