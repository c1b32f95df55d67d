"""Image host client: uploads background images to ImgBB."""

import logging

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class ImageHostError(Exception):
    """Raised when an image upload fails."""


class ImageHostConfigurationError(ImageHostError):
    """Raised when the image host API key is missing."""


class ImgBBClient:
    """Uploads image bytes and returns their public URL."""

    def __init__(self, api_key: str, upload_url: str = "https://api.imgbb.com/1/upload", timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._upload_url = upload_url
        self._timeout = timeout

    async def upload(self, data: bytes, filename: str = "image") -> str:
        """Upload an image.

        Returns:
            The image's display URL (or direct URL when no display URL is given).

        Raises:
            ImageHostConfigurationError: If no API key is configured.
            ImageHostError: On empty payloads, HTTP errors or unexpected responses.
        """
        if not self._api_key:
            raise ImageHostConfigurationError("IMGBB_API_KEY is not configured")
        if not data:
            raise ImageHostError("Image file is required")

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._upload_url,
                    params={"key": self._api_key},
                    files={"image": (filename, data)},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("ImgBB returned %d: %s", exc.response.status_code, exc.response.text)
            raise ImageHostError(f"Failed to upload image. Status: {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            logger.error("ImgBB request failed: %s", exc)
            raise ImageHostError(f"Image upload request failed: {exc}") from exc

        try:
            body = response.json()
            data_block = body["data"]
            url = data_block.get("display_url") or data_block["url"]
        except (KeyError, TypeError, ValueError) as exc:
            raise ImageHostError(f"Unexpected image host response: {exc}") from exc

        if not body.get("success") or not url:
            raise ImageHostError("Image host did not return a success status or image URL")

        logger.info("Image uploaded: filename=%s bytes=%d", filename, len(data))
        return url


def get_image_host() -> ImgBBClient:
    return ImgBBClient(api_key=settings.IMGBB_API_KEY, upload_url=settings.IMGBB_UPLOAD_URL)
