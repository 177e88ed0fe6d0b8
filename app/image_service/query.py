"""Filter composition and paginated reads over a user's images."""

from typing import List, Optional
import logging
import math

from fastapi import Query
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.storage.tables import Image, ImageMetadata, ImageTag, ImageColor
from app.image_service.models import (
    ImageFilter,
    ImageItem,
    ListImagesResponse,
    Pagination,
    PaginationMeta,
)
from app.settings import settings
from app.exceptions import DatabaseException

log = logging.getLogger(__name__)


def pagination_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def filter_params(
    color: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    similar_to: Optional[str] = Query(None, alias="similarTo", description="Image ID for similar image search"),
) -> ImageFilter:
    return ImageFilter(color=color, search=search, similar_to=similar_to)


def has_color(colors: List[str]):
    """Images whose metadata holds any of the given (lower-case) colours."""
    return Image.image_metadata.has(
        ImageMetadata.color_rows.any(ImageColor.color.in_(colors))
    )


def has_tag(tags: List[str]):
    """Images whose metadata holds any of the given tags, compared case-insensitively."""
    lowered = [tag.lower() for tag in tags]
    return Image.image_metadata.has(
        ImageMetadata.tag_rows.any(func.lower(ImageTag.tag).in_(lowered))
    )


def search_condition(search: str):
    """Any token is a tag, or the whole string is a tag, or the description contains it."""
    terms = search.lower().split()
    terms.append(search.lower())
    return or_(
        has_tag(terms),
        Image.image_metadata.has(ImageMetadata.description.icontains(search, autoescape=True)),
    )


def find_source_metadata(db: Session, user_id: str, image_id: str) -> Optional[ImageMetadata]:
    stmt = (
        select(ImageMetadata)
        .join(Image, Image.id == ImageMetadata.image_id)
        .where(Image.id == image_id, Image.user_id == user_id)
        .options(selectinload(ImageMetadata.tag_rows), selectinload(ImageMetadata.color_rows))
    )
    return db.scalars(stmt).first()


def build_conditions(db: Session, user_id: str, filters: ImageFilter) -> list:
    """Translate the optional filters into a list of AND-ed conditions."""
    conditions = [Image.user_id == user_id]

    if filters.color:
        conditions.append(has_color([filters.color.lower()]))

    if filters.search:
        conditions.append(search_condition(filters.search))

    if filters.similar_to:
        source = find_source_metadata(db, user_id, filters.similar_to)
        if source is None:
            log.debug("similarTo %s not found for user %s; ignoring", filters.similar_to, user_id)
        else:
            conditions.append(or_(has_color(source.colors), has_tag(source.tags)))
            conditions.append(Image.id != filters.similar_to)

    return conditions


class ImageQueryService:
    def __init__(self, db: Session):
        self.db = db

    def get_images_by_user_id(
        self,
        user_id: str,
        filters: ImageFilter,
        pagination: Pagination,
    ) -> ListImagesResponse:
        """Returns one page of the user's images, newest first, with totals.

        The source lookup, the count and the page read share one transaction.
        """
        try:
            with self.db.begin():
                conditions = build_conditions(self.db, user_id, filters)

                total = self.db.scalar(
                    select(func.count()).select_from(Image).where(*conditions)
                )
                stmt = (
                    select(Image)
                    .where(*conditions)
                    .order_by(Image.created_at.desc(), Image.seq.desc())
                    .offset(pagination.offset)
                    .limit(pagination.limit)
                    .options(
                        selectinload(Image.image_metadata).selectinload(ImageMetadata.tag_rows),
                        selectinload(Image.image_metadata).selectinload(ImageMetadata.color_rows),
                    )
                )
                images = [ImageItem.model_validate(image) for image in self.db.scalars(stmt)]
        except SQLAlchemyError as e:
            log.error(f"Image query failed: {e}")
            raise DatabaseException(f"Failed to fetch images: {e}")

        return ListImagesResponse(
            images=images,
            meta=PaginationMeta(
                total=total,
                page=pagination.page,
                limit=pagination.limit,
                total_pages=math.ceil(total / pagination.limit),
            ),
        )
