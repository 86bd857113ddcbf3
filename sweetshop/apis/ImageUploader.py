"""Cloudinary unsigned image upload for profile pictures."""

from typing import Optional

import requests

from sweetshop.exceptions import ExternalServiceError, ValidationError
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class ImageUploader:

    def __init__(self, cloud_name: str, upload_preset: str = "ml_default", timeout: Optional[float] = None):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.timeout = timeout
        self.upload_url = f"https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"

    def upload(self, content: bytes, filename: str = "profile.jpg") -> str:
        """Upload an image and return its opaque public id.

        Args:
            content: Raw image bytes
            filename: Original file name, forwarded to the CDN

        Returns:
            The ``public_id`` assigned by Cloudinary

        Raises:
            ValidationError: If the image is empty or too large
            ExternalServiceError: If the upload fails
        """
        if not content:
            raise ValidationError("Please choose an image to upload.", field="profilePic")
        if len(content) > MAX_IMAGE_BYTES:
            raise ValidationError("Image must be smaller than 10 MB.", field="profilePic")

        try:
            response = requests.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset},
                files={"file": (filename, content)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ExternalServiceError("cloudinary", f"Image upload failed: {e}")

        if response.status_code >= 400:
            raise ExternalServiceError("cloudinary", "Image upload failed", response.status_code)

        public_id = response.json().get("public_id")
        if not public_id:
            raise ExternalServiceError("cloudinary", "Image upload returned no public_id", response.status_code)

        logger.info(f"Uploaded image {filename} as {public_id}")
        return public_id

    def url_for(self, public_id: str) -> str:
        return f"https://res.cloudinary.com/{self.cloud_name}/image/upload/{public_id}"
