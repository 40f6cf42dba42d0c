"""Object storage used by the job pipeline.

Results are uploaded to Cloudinary; sources are fetched over plain HTTP from
whatever public URL the upload service recorded on the image.
"""

import logging
from io import BytesIO

import cloudinary.uploader
import requests
from django.conf import settings

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class CloudinaryStorage:
    """Upload/download facade over Cloudinary"""

    def __init__(self, folder=None, timeout=None):
        self.folder = folder or settings.STORAGE_FOLDER
        self.timeout = timeout or settings.STORAGE_HTTP_TIMEOUT_SECONDS

    def upload(self, content: bytes, path: str) -> str:
        """
        Upload raw bytes under `path` (relative to the configured folder)

        Returns:
            Public HTTPS URL of the stored asset
        """
        try:
            result = cloudinary.uploader.upload(
                BytesIO(content),
                folder=self.folder,
                public_id=path,
                resource_type="image",
                overwrite=False,
            )
        except Exception as exc:
            raise StorageError(f"Failed to upload result image: {exc}") from exc

        url = result.get("secure_url")
        if not url:
            raise StorageError("Storage upload did not return a URL")

        logger.info(f"Stored {len(content)} bytes at {url}")
        return url

    def download(self, url: str) -> bytes:
        """Fetch an asset by URL and return its raw bytes"""
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise StorageError(f"Failed to download source image: {exc}") from exc

        return response.content


def get_storage():
    return CloudinaryStorage()
