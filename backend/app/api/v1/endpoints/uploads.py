"""Image uploads for form backgrounds."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.core.auth import get_current_owner_id
from app.core.config import settings
from app.schemas.public import ImageUploadResponse
from app.services.image_host import (
    ImageHostConfigurationError,
    ImageHostError,
    ImgBBClient,
    get_image_host,
)

router = APIRouter()


@router.post("/images", response_model=ImageUploadResponse, status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    owner_id: str = Depends(get_current_owner_id),
    image_host: ImgBBClient = Depends(get_image_host),
):
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Only image uploads are supported")

    data = await file.read()
    max_bytes = settings.IMAGE_MAX_UPLOAD_MB * 1024 * 1024
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image size should not exceed {settings.IMAGE_MAX_UPLOAD_MB}MB.",
        )

    try:
        url = await image_host.upload(data, file.filename or "image")
    except ImageHostConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except ImageHostError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    return ImageUploadResponse(url=url)
