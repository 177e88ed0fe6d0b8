from fastapi import APIRouter, Depends, UploadFile, File, Response
from typing import List
import logging

from app.dependencies.dependencies import get_current_user, get_image_service, get_image_query_service
from app.auth_service.models import CurrentUser
from app.image_service.service import ImageService, ALLOWED_IMAGE_TYPES, validate_image_bytes
from app.image_service.query import ImageQueryService, pagination_params, filter_params
from app.image_service.models import ImageItem, ImageFilter, ListImagesResponse, Pagination
from app.exceptions import InvalidImageException

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/images",
    tags=["images"]
)

@router.post("/upload", response_model=List[ImageItem], status_code=201)
async def upload_images(
    response: Response,
    images: List[UploadFile] = File(...),
    user: CurrentUser = Depends(get_current_user),
    service: ImageService = Depends(get_image_service),
):
    """Uploads one or more images and stores their generated metadata as one batch."""
    # Add security header
    response.headers["X-Content-Type-Options"] = "nosniff"

    payloads = []
    for image in images:
        # Pre-check content-type
        if image.content_type not in ALLOWED_IMAGE_TYPES:
            raise InvalidImageException(f"Unsupported content type: {image.content_type}")
        contents = await image.read()
        # Validate actual file content
        validate_image_bytes(contents, image.content_type)
        payloads.append(contents)

    saved = await service.upload_images(payloads, user.user_id)
    return [ImageItem.model_validate(image) for image in saved]

@router.get("", response_model=ListImagesResponse)
def list_images_handler(
    user: CurrentUser = Depends(get_current_user),
    filters: ImageFilter = Depends(filter_params),
    pagination: Pagination = Depends(pagination_params),
    service: ImageQueryService = Depends(get_image_query_service),
):
    """Lists the caller's images, newest first, with optional filters."""
    return service.get_images_by_user_id(user.user_id, filters, pagination)
