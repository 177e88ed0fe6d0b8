from io import BytesIO
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from typing import Any, Dict
import logging

from app.settings import settings
from app.exceptions import UpstreamException

log = logging.getLogger(__name__)

# -------------------------
# Cloudinary Service
# -------------------------
class CloudinaryService:
    """Media upload gateway: hosts the image and returns tags, colours and a caption."""

    def __init__(self):
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self.upload_options = {
            "resource_type": "auto",
            "auto_tagging": settings.cloudinary_auto_tagging,
            "colors": True,
            "categorization": settings.cloudinary_categorization,
            "detection": settings.cloudinary_detection,
        }
        log.info("Initialized Cloudinary client for cloud %s", settings.cloudinary_cloud_name)

    def upload(self, content: bytes) -> Dict[str, Any]:
        """Uploads one payload. Blocking; callers fan out on an executor."""
        try:
            result = cloudinary.uploader.upload(BytesIO(content), **self.upload_options)
        except CloudinaryError as e:
            log.error("Cloudinary upload failed: %s", e)
            raise UpstreamException(f"Failed to upload image to Cloudinary: {e}")
        log.debug("Uploaded %s to %s", result.get("public_id"), result.get("secure_url"))
        return result

    def close(self):
        log.info("Closed Cloudinary client")
