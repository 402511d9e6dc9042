import asyncio

import httpx
import structlog

from ..domain.value_objects import Platform, PublishOutcome, StagedMedia
from .base import DEFAULT_TIMEOUT_SECONDS, BasePublisher, ProtocolStepError

logger = structlog.get_logger()

# Settle time between container creation and publishing. Tunable: the
# container status is polled afterwards when status checks are enabled.
DEFAULT_SETTLE_SECONDS = 10.0
DEFAULT_STATUS_CHECKS = 5
DEFAULT_POLL_INTERVAL_SECONDS = 3.0

CONTAINER_READY = "FINISHED"
CONTAINER_FAILED = ("ERROR", "EXPIRED")


class InstagramPublisher(BasePublisher):
    """
    Instagram Graph API publisher (two-phase container publish).

    1. Create a media container from caption + public image URL
    2. Wait for Instagram to process the image
    3. Publish the container
    """

    DISPLAY_NAME = "Instagram"

    def __init__(
        self,
        access_token: str,
        instagram_account_id: str,
        api_version: str = "v24.0",
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        status_checks: int = DEFAULT_STATUS_CHECKS,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(timeout=timeout)
        self._access_token = access_token
        self._account_id = instagram_account_id
        self._base_url = f"https://graph.facebook.com/{api_version}"
        self._settle_seconds = settle_seconds
        self._status_checks = status_checks
        self._poll_interval_seconds = poll_interval_seconds

        if not access_token:
            logger.warning("Instagram token not configured")
        if not instagram_account_id:
            logger.warning("Instagram account id not configured")

    @property
    def platform(self) -> Platform:
        return Platform.INSTAGRAM

    async def publish(self, caption: str, media: StagedMedia) -> PublishOutcome:
        """Publish an image post to Instagram."""
        if not self._access_token or not self._account_id:
            return self._failure("Token o Account ID no configurado")

        if not media.is_remote:
            return self._failure("Instagram requiere una URL pública de la imagen")

        try:
            async with self._client() as client:
                # Step 1: Create media container
                logger.info("Publishing to Instagram", step="1/2")
                container_id = await self._create_container(client, caption, media.location)
                logger.info("Instagram media container created", container_id=container_id)

                # Let Instagram process the image before publishing
                await asyncio.sleep(self._settle_seconds)
                await self._wait_until_ready(client, container_id)

                # Step 2: Publish the container
                logger.info("Publishing to Instagram", step="2/2")
                post_id = await self._publish_container(client, container_id)

            logger.info("Instagram post published", post_id=post_id)
            return self._success(post_id)

        except ProtocolStepError as e:
            logger.error("Instagram delivery failed", error=str(e))
            return self._failure(str(e))

        except Exception as e:
            logger.error("Instagram delivery failed", error=str(e))
            return self._failure(str(e) or type(e).__name__)

    async def _create_container(
        self,
        client: httpx.AsyncClient,
        caption: str,
        image_url: str,
    ) -> str:
        response = await client.post(
            f"{self._base_url}/{self._account_id}/media",
            data={
                "caption": self._caption(caption),
                "image_url": image_url,
                "access_token": self._access_token,
            },
        )
        if response.is_error:
            raise ProtocolStepError(self._api_error(response, "Error en paso 1"))

        container_id = response.json().get("id")
        if not container_id:
            raise ProtocolStepError("Instagram no devolvió el contenedor de medios")
        return str(container_id)

    async def _wait_until_ready(self, client: httpx.AsyncClient, container_id: str) -> None:
        """
        Poll the container's processing status.

        A container in ERROR/EXPIRED fails the publish. If the status cannot be
        read, or checks run out, publishing is attempted anyway and the
        publish call reports whatever Instagram says.
        """
        for attempt in range(1, self._status_checks + 1):
            try:
                response = await client.get(
                    f"{self._base_url}/{container_id}",
                    params={"fields": "status_code", "access_token": self._access_token},
                )
            except httpx.HTTPError as e:
                logger.warning("Instagram status check failed", error=str(e))
                return

            if response.is_error:
                logger.warning(
                    "Instagram status check rejected",
                    status_code=response.status_code,
                    error=self._api_error(response),
                )
                return

            try:
                status = response.json().get("status_code")
            except (ValueError, AttributeError) as e:
                logger.warning("Instagram status unreadable", error=str(e))
                return

            logger.info("Instagram container status", status=status, attempt=attempt)

            if status == CONTAINER_READY:
                return
            if status in CONTAINER_FAILED:
                raise ProtocolStepError(f"El contenedor de Instagram no se procesó: {status}")

            if attempt < self._status_checks:
                await asyncio.sleep(self._poll_interval_seconds)

    async def _publish_container(self, client: httpx.AsyncClient, container_id: str) -> str:
        response = await client.post(
            f"{self._base_url}/{self._account_id}/media_publish",
            data={
                "creation_id": container_id,
                "access_token": self._access_token,
            },
        )
        if response.is_error:
            raise ProtocolStepError(self._api_error(response, "Error en paso 2"))

        post_id = response.json().get("id")
        if not post_id:
            raise ProtocolStepError("Instagram no devolvió el identificador del post")
        return str(post_id)
