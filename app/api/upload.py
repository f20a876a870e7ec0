"""Image upload endpoints: presigned PUT URLs for browsers, multipart upload through the API."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData

from app.api.auth import get_current_user
from app.schemas.car import MAX_IMAGES_PER_LISTING
from app.schemas.upload import DirectUploadResponse, PresignedUploadRequest, PresignedUploadResponse
from app.schemas.user import CurrentUser
from app.services.storage import ImageFile, ObjectStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MB
ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})


def _is_upload_file(obj: object) -> bool:
    """True if obj is an uploaded file (UploadFile or file-like with filename and read)."""
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


def _check_content_type(content_type: str, file_name: str) -> str:
    normalized = content_type.split(";")[0].strip().lower()
    if normalized not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=422,
            detail=f"{file_name}: unsupported image type {content_type or 'unknown'!r}.",
        )
    return normalized


def _collect_files(form: FormData) -> list:
    """Image parts of a multipart form; `files` and `file` fields first, then any file-like part."""
    files = [f for f in form.getlist("files") + form.getlist("file") if _is_upload_file(f)]
    if not files:
        # Some clients send the files under another name; use every file-like part.
        files = [v for _, v in form.multi_items() if _is_upload_file(v)]
    return files


async def _read_images(request: Request) -> list[ImageFile]:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != "multipart/form-data":
        raise HTTPException(status_code=415, detail="Content-Type must be multipart/form-data.")
    form = await request.form()
    files = _collect_files(form)
    if not files:
        raise HTTPException(
            status_code=422,
            detail="Multipart request must include at least one image file.",
        )
    if len(files) > MAX_IMAGES_PER_LISTING:
        raise HTTPException(
            status_code=422,
            detail=f"At most {MAX_IMAGES_PER_LISTING} images per request.",
        )
    images: list[ImageFile] = []
    for file in files:
        file_name = getattr(file, "filename", None) or "image"
        file_type = _check_content_type(getattr(file, "content_type", None) or "", file_name)
        data = await file.read()
        if not data:
            raise HTTPException(status_code=422, detail=f"{file_name}: file is empty.")
        if len(data) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=422,
                detail=f"{file_name}: image must not exceed {MAX_IMAGE_BYTES // (1024 * 1024)} MB.",
            )
        images.append(ImageFile(file_name=file_name, content_type=file_type, data=data))
    return images


@router.post("", response_model=PresignedUploadResponse)
def create_presigned_upload(
    body: PresignedUploadRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
) -> PresignedUploadResponse:
    """
    Issue a presigned PUT URL for one image.

    The client uploads with `Content-Type` equal to `fileType`, then stores
    `publicUrl` in the listing.
    """
    content_type = _check_content_type(body.file_type, body.file_name)
    result = storage.create_presigned_upload(body.file_name, content_type)
    logger.info("Presigned upload issued", extra={"user_id": current_user.id, "key": result.key})
    return result


@router.post("/direct", response_model=DirectUploadResponse, status_code=201)
async def upload_images(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
) -> DirectUploadResponse:
    """
    Upload images through the API as `multipart/form-data`.

    Files may be sent under `files` (repeated) or `file`. Uploads run in
    parallel; URLs come back in the order the files were sent.
    """
    images = await _read_images(request)
    urls = await run_in_threadpool(storage.upload_files, images)
    logger.info("Images uploaded", extra={"user_id": current_user.id, "count": len(urls)})
    return DirectUploadResponse(accepted=len(urls), urls=urls)
