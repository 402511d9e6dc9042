import httpx
import structlog

from ..domain.value_objects import Platform, PublishOutcome, StagedMedia
from .base import DEFAULT_TIMEOUT_SECONDS, BasePublisher

logger = structlog.get_logger()


class FacebookPublisher(BasePublisher):
    """Facebook Graph API publisher for Page photo posts (single call)."""

    DISPLAY_NAME = "Facebook"

    def __init__(
        self,
        access_token: str,
        page_id: str,
        api_version: str = "v24.0",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(timeout=timeout)
        self._access_token = access_token
        self._page_id = page_id
        self._base_url = f"https://graph.facebook.com/{api_version}"

        if not access_token:
            logger.warning("Facebook token not configured")
        if not page_id:
            logger.warning("Facebook page id not configured")

    @property
    def platform(self) -> Platform:
        return Platform.FACEBOOK

    async def publish(self, caption: str, media: StagedMedia) -> PublishOutcome:
        """Post a photo with caption to the Facebook Page."""
        if not self._access_token or not self._page_id:
            return self._failure("Token o Page ID no configurado")

        if not media.is_remote:
            return self._failure("Facebook requiere una URL pública de la imagen")

        url = f"{self._base_url}/{self._page_id}/photos"
        payload = {
            "caption": self._caption(caption),
            "url": media.location,
            "access_token": self._access_token,
        }

        try:
            logger.info("Publishing to Facebook", page_id=self._page_id)
            async with self._client() as client:
                response = await client.post(url, data=payload)
                response.raise_for_status()
                data = response.json()

            post_id = data.get("id") or data.get("post_id")
            if not post_id:
                logger.error("Facebook response without post id", response=data)
                return self._failure("Facebook no devolvió el identificador del post")

            logger.info("Facebook post created", post_id=post_id)
            return self._success(post_id)

        except httpx.HTTPStatusError as e:
            error_msg = self._api_error(e.response)
            logger.error(
                "Facebook delivery failed",
                status_code=e.response.status_code,
                error=error_msg,
            )
            return self._failure(error_msg)

        except Exception as e:
            logger.error("Facebook delivery failed", error=str(e))
            return self._failure(str(e) or type(e).__name__)
