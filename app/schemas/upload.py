"""Request/response schemas for the image upload endpoints."""

from pydantic import Field

from app.schemas.base import CamelModel


class PresignedUploadRequest(CamelModel):
    """File metadata for issuing a presigned PUT URL."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="MIME type the client will send as Content-Type (e.g. image/jpeg).",
    )


class PresignedUploadResponse(CamelModel):
    """Presigned PUT URL plus the URL the object will have once uploaded."""

    presigned_url: str
    public_url: str
    key: str


class DirectUploadResponse(CamelModel):
    """Response after uploading images through the API."""

    accepted: int = Field(..., ge=0, description="Number of images stored.")
    urls: list[str] = Field(
        default_factory=list,
        description="Public URLs of the stored images, in upload order.",
    )
