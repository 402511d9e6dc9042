import asyncio
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog

from ..domain.value_objects import (
    Platform,
    PublishOutcome,
    StagedMedia,
    get_mime_type,
    is_image,
)
from ..infrastructure.logging import redact
from .base import DEFAULT_TIMEOUT_SECONDS, BasePublisher, ProtocolStepError

logger = structlog.get_logger()

IMAGE_RECIPE = "urn:li:digitalmediaRecipe:feedshare-image"
UPLOAD_MECHANISM = "com.linkedin.digitalmedia.uploading.MediaUploadHttpRequest"


@dataclass(frozen=True)
class AssetRegistration:
    """One-time upload slot returned by registerUpload."""

    upload_url: str
    asset: str


class LinkedInPublisher(BasePublisher):
    """
    LinkedIn API publisher for member image posts.

    Four sequential steps, each depending on the previous one:
    userinfo -> registerUpload -> byte PUT -> ugcPosts.
    """

    DISPLAY_NAME = "LinkedIn"
    BASE_URL = "https://api.linkedin.com/v2"

    def __init__(
        self,
        access_token: str,
        media_title: str = "UAGRM",
        media_description: str = "Publicación de la UAGRM - FCCT",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        upload_timeout: float = 300.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self._access_token = access_token
        self._media_title = media_title
        self._media_description = media_description
        self._upload_timeout = upload_timeout

        if not access_token:
            logger.warning("LinkedIn token not configured")

    @property
    def platform(self) -> Platform:
        return Platform.LINKEDIN

    def _headers(self, restli: bool = False) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }
        if restli:
            headers["X-Restli-Protocol-Version"] = "2.0.0"
        return headers

    async def publish(self, caption: str, media: StagedMedia) -> PublishOutcome:
        """Publish an image post on behalf of the authenticated member."""
        if not self._access_token:
            return self._failure("Token no configurado")

        try:
            async with self._client() as client:
                logger.info("Publishing to LinkedIn", step="1/4 userinfo")
                person_urn = await self._get_person_urn(client)

                logger.info("Publishing to LinkedIn", step="2/4 register upload")
                registration = await self._register_upload(client, person_urn)

                logger.info("Publishing to LinkedIn", step="3/4 upload image")
                await self._upload_image(client, media, registration.upload_url)

                logger.info("Publishing to LinkedIn", step="4/4 create post")
                post_id = await self._create_post(
                    client, person_urn, caption, registration.asset
                )

            logger.info("LinkedIn post created", post_id=post_id)
            return self._success(post_id)

        except ProtocolStepError as e:
            logger.error("LinkedIn delivery failed", error=str(e))
            return self._failure(str(e))

        except Exception as e:
            logger.error("LinkedIn delivery failed", error=str(e))
            return self._failure(str(e) or type(e).__name__)

    async def _get_person_urn(self, client: httpx.AsyncClient) -> str:
        response = await client.get(f"{self.BASE_URL}/userinfo", headers=self._headers())
        if response.is_error:
            raise ProtocolStepError(
                "No se pudo obtener la información del usuario: "
                + self._api_error(response)
            )

        sub = response.json().get("sub")
        if not sub:
            raise ProtocolStepError("No se pudo obtener la información del usuario")

        person_urn = f"urn:li:person:{sub}"
        logger.info("LinkedIn member resolved", person_urn=person_urn)
        return person_urn

    async def _register_upload(
        self,
        client: httpx.AsyncClient,
        person_urn: str,
    ) -> AssetRegistration:
        payload = {
            "registerUploadRequest": {
                "recipes": [IMAGE_RECIPE],
                "owner": person_urn,
                "serviceRelationships": [
                    {
                        "relationshipType": "OWNER",
                        "identifier": "urn:li:userGeneratedContent",
                    }
                ],
            }
        }
        response = await client.post(
            f"{self.BASE_URL}/assets",
            params={"action": "registerUpload"},
            headers=self._headers(restli=True),
            json=payload,
        )
        if response.is_error:
            raise ProtocolStepError(
                "No se pudo registrar la imagen: " + self._api_error(response)
            )

        try:
            value = response.json()["value"]
            upload_url = value["uploadMechanism"][UPLOAD_MECHANISM]["uploadUrl"]
            asset = value["asset"]
        except (KeyError, TypeError) as e:
            raise ProtocolStepError("No se pudo registrar la imagen") from e

        logger.info(
            "LinkedIn image registered",
            asset=asset,
            upload_url=redact(upload_url, 40),
        )
        return AssetRegistration(upload_url=upload_url, asset=asset)

    async def _upload_image(
        self,
        client: httpx.AsyncClient,
        media: StagedMedia,
        upload_url: str,
    ) -> None:
        content, content_type = await self._read_media(client, media)

        response = await client.put(
            upload_url,
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Content-Type": content_type,
            },
            content=content,
            timeout=self._upload_timeout,
        )
        if response.is_error:
            raise ProtocolStepError(
                f"No se pudo subir la imagen: {response.status_code}"
            )
        logger.info("LinkedIn image uploaded", size=len(content))

    async def _read_media(
        self,
        client: httpx.AsyncClient,
        media: StagedMedia,
    ) -> tuple[bytes, str]:
        if not media.is_remote:
            path = Path(media.location)
            if not path.is_file():
                raise ProtocolStepError("No se pudo leer la imagen local")
            content = await asyncio.to_thread(path.read_bytes)
            return content, get_mime_type(media.location, "image/png")

        logger.info("Downloading image", url=redact(media.location, 80))
        response = await client.get(
            media.location,
            follow_redirects=True,
            timeout=self._upload_timeout,
        )
        if response.is_error:
            raise ProtocolStepError(
                f"No se pudo descargar la imagen: {response.status_code}"
            )

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not is_image(content_type):
            content_type = get_mime_type(media.location, "image/png")
        return response.content, content_type

    async def _create_post(
        self,
        client: httpx.AsyncClient,
        person_urn: str,
        caption: str,
        asset: str,
    ) -> str:
        payload = {
            "author": person_urn,
            "lifecycleState": "PUBLISHED",
            "specificContent": {
                "com.linkedin.ugc.ShareContent": {
                    "shareCommentary": {"text": self._caption(caption)},
                    "shareMediaCategory": "IMAGE",
                    "media": [
                        {
                            "status": "READY",
                            "description": {"text": self._media_description},
                            "media": asset,
                            "title": {"text": self._media_title},
                        }
                    ],
                }
            },
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }
        response = await client.post(
            f"{self.BASE_URL}/ugcPosts",
            headers=self._headers(restli=True),
            json=payload,
        )
        if response.is_error:
            raise ProtocolStepError("No se pudo crear el post: " + self._api_error(response))

        post_id = response.json().get("id") or response.headers.get("x-restli-id")
        if not post_id:
            raise ProtocolStepError("No se pudo crear el post")
        return str(post_id)
