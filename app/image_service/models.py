from typing import List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.settings import settings

class ImageMetadataItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    image_id: str
    tags: List[str] = []
    colors: List[str] = []
    description: Optional[str] = None
    ai_processing_status: str

class ImageItem(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    public_id: str
    secure_url: str
    created_at: datetime
    metadata: Optional[ImageMetadataItem] = Field(
        None, validation_alias=AliasChoices("image_metadata", "metadata")
    )

class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

class ListImagesResponse(BaseModel):
    images: List[ImageItem]
    meta: PaginationMeta

class Pagination(BaseModel):
    page: int = 1
    limit: int = settings.default_page_limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

class ImageFilter(BaseModel):
    color: Optional[str] = None
    search: Optional[str] = None
    similar_to: Optional[str] = None
