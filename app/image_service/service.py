from typing import Any, Dict, List
from io import BytesIO
from concurrent.futures import ThreadPoolExecutor
import asyncio
import logging
import xml.etree.ElementTree as ET
from PIL import Image as PILImage
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.storage.cloudinary import CloudinaryService
from app.storage.tables import Image, ImageMetadata
from app.settings import settings
from app.exceptions import InvalidImageException, ValidationException, UpstreamException, DatabaseException

log = logging.getLogger(__name__)

# Allowed content types
ALLOWED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/svg+xml",
    "image/webp"
}

PROCESSING_COMPLETED = "completed"

def validate_image_bytes(file_bytes: bytes, content_type: str) -> str:
    """Validate that the uploaded file is a real image."""
    if content_type in {"image/png", "image/jpeg", "image/gif", "image/webp"}:
        try:
            img = PILImage.open(BytesIO(file_bytes))
            img.load()
            MIME_MAP = {
                "JPEG": "image/jpeg",
                "PNG": "image/png",
                "GIF": "image/gif",
                "WEBP": "image/webp",
            }
            mime_type = MIME_MAP.get((img.format or "").upper())
        except Exception:
            raise InvalidImageException("Invalid image file")
        if mime_type not in ALLOWED_IMAGE_TYPES:
            raise InvalidImageException(f"Unsupported image type: {img.format}")
        return mime_type
    elif content_type == "image/svg+xml":
        try:
            root = ET.fromstring(file_bytes.decode("utf-8"))
        except Exception:
            raise InvalidImageException("Invalid SVG file")
        # Check if root tag is svg (with or without namespace)
        tag_name = root.tag.split("}")[-1].lower()
        if tag_name != "svg":
            raise InvalidImageException("Invalid SVG root element")
        return "image/svg+xml"
    else:
        raise InvalidImageException(f"Unsupported content type: {content_type}")

def derive_metadata(result: Dict[str, Any]) -> Dict[str, Any]:
    """Reduces a gateway upload result to the bounded metadata record we store.

    Tags and colours are truncated, not sampled. Colours come from the
    ``predominant.google`` list of ``[name, percentage]`` pairs and are
    lower-cased so that colour filters can match case-insensitively.
    """
    tags = list(result.get("tags") or [])[:settings.max_tags]

    predominant = (result.get("predominant") or {}).get("google") or []
    colors = [str(entry[0]).lower() for entry in predominant if entry][:settings.max_colors]

    captioning = ((result.get("info") or {}).get("detection") or {}).get("captioning") or {}
    description = (captioning.get("data") or {}).get("caption")

    return {
        "tags": tags,
        "colors": colors,
        "description": description,
        "ai_processing_status": PROCESSING_COMPLETED,
    }


class ImageService:
    def __init__(self, db: Session, gateway: CloudinaryService):
        self.db = db
        self.gateway = gateway

    async def upload_images(self, payloads: List[bytes], user_id: str) -> List[Image]:
        """Uploads every payload to the gateway concurrently, then persists the batch.

        Any failed upload fails the whole call before anything is written.
        Media already hosted by the gateway at that point is left in place.
        """
        if not payloads:
            raise ValidationException("At least one image is required")

        log.info("Uploading batch of %d image(s) for user %s", len(payloads), user_id)
        loop = asyncio.get_running_loop()
        # One worker per payload so every gateway call is in flight at once
        executor = ThreadPoolExecutor(max_workers=len(payloads), thread_name_prefix="gateway-upload")
        try:
            uploads = [loop.run_in_executor(executor, self.gateway.upload, payload) for payload in payloads]
            results = await asyncio.gather(*uploads)
        except UpstreamException:
            log.error("Batch upload for user %s failed; nothing persisted", user_id)
            raise
        except Exception as e:
            log.error("Batch upload for user %s failed; nothing persisted: %s", user_id, e)
            raise UpstreamException(f"Image upload failed: {e}")
        finally:
            # Calls still running after a failure finish on their own threads
            executor.shutdown(wait=False)

        return await loop.run_in_executor(None, self.persist_batch, user_id, results)

    def persist_batch(self, user_id: str, results: List[Dict[str, Any]]) -> List[Image]:
        """Inserts one Image and ImageMetadata pair per gateway result in one transaction."""
        images = []
        for result in results:
            image = Image(
                user_id=user_id,
                public_id=result["public_id"],
                secure_url=result["secure_url"],
            )
            image.image_metadata = ImageMetadata(**derive_metadata(result))
            images.append(image)

        try:
            with self.db.begin():
                self.db.add_all(images)
        except SQLAlchemyError as e:
            log.error(f"Persisting image batch failed: {e}")
            raise DatabaseException(f"Failed to save images: {e}")

        log.info("Saved %d image(s) for user %s", len(images), user_id)
        return images
