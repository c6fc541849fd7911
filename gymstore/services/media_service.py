import hashlib
import logging
import time
from typing import Literal

import httpx

from gymstore.core.config import Settings, settings

logger = logging.getLogger(__name__)

ResourceType = Literal["image", "video"]


class MediaUploadError(Exception):
    pass


class MediaUploader:
    """Signed uploads to the Cloudinary upload API."""

    def __init__(self, config: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    def _signature(self, timestamp: int) -> str:
        payload = f"timestamp={timestamp}{self.config.cloudinary_api_secret}"
        return hashlib.sha1(payload.encode()).hexdigest()

    def upload(self, content: bytes, filename: str, resource_type: ResourceType = "image") -> str:
        if not (
            self.config.cloudinary_cloud_name
            and self.config.cloudinary_api_key
            and self.config.cloudinary_api_secret
        ):
            raise MediaUploadError("Media storage is not configured")

        timestamp = int(time.time())
        url = (
            f"https://api.cloudinary.com/v1_1/{self.config.cloudinary_cloud_name}"
            f"/{resource_type}/upload"
        )
        try:
            with httpx.Client(timeout=self.config.media_timeout_seconds, transport=self._transport) as client:
                response = client.post(
                    url,
                    data={
                        "api_key": self.config.cloudinary_api_key,
                        "timestamp": str(timestamp),
                        "signature": self._signature(timestamp),
                    },
                    files={"file": (filename, content)},
                )
                response.raise_for_status()
                public_url = response.json()["secure_url"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            raise MediaUploadError(f"Upload of {filename} failed: {exc}") from exc

        logger.info("media_uploaded filename=%s resource_type=%s", filename, resource_type)
        return public_url


def get_media_uploader() -> MediaUploader:
    return MediaUploader(settings)
