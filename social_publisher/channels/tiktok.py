import asyncio
import tempfile
from pathlib import Path

import httpx
import structlog

from ..domain.value_objects import (
    MediaRequirement,
    Platform,
    PublishOutcome,
    StagedMedia,
    get_mime_type,
)
from ..infrastructure.logging import redact
from ..infrastructure.media_files import download_to_file, remove_file
from .base import DEFAULT_TIMEOUT_SECONDS, BasePublisher, ProtocolStepError

logger = structlog.get_logger()

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"
TOTAL_CHUNK_COUNT = 1  # Whole file in one PUT


class TikTokPublisher(BasePublisher):
    """
    TikTok Content Posting API publisher (FILE_UPLOAD).

    Init declares the file size and returns a one-time upload URL plus a
    publish id; the bytes are then PUT in a single chunk. Success means
    TikTok accepted the bytes for processing, not that the post is live.
    """

    DISPLAY_NAME = "TikTok"
    INIT_URL = "https://open.tiktokapis.com/v2/post/publish/video/init/"

    def __init__(
        self,
        access_token: str,
        privacy_level: str = "SELF_ONLY",
        temp_dir: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        upload_timeout: float = 300.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self._access_token = access_token
        self._privacy_level = privacy_level
        self._temp_dir = temp_dir or tempfile.gettempdir()
        self._upload_timeout = upload_timeout

        if not access_token:
            logger.warning("TikTok token not configured")

    @property
    def platform(self) -> Platform:
        return Platform.TIKTOK

    @property
    def media_requirement(self) -> MediaRequirement:
        return MediaRequirement.LOCAL_FILE

    async def publish(self, caption: str, media: StagedMedia) -> PublishOutcome:
        """
        Upload a video to TikTok.

        ``media`` is a local path, or a remote URL that is downloaded to a
        temp file first. The temp file is always removed afterwards.
        """
        if not self._access_token:
            return self._failure("Token no configurado")

        temp_path: str | None = None
        try:
            logger.info("Publishing to TikTok", source="FILE_UPLOAD")

            if media.is_remote:
                logger.info("Remote video detected, downloading")
                try:
                    downloaded = await download_to_file(
                        media.location,
                        directory=self._temp_dir,
                        prefix="temp_tiktok",
                        default_suffix=".mp4",
                        timeout=self._upload_timeout,
                    )
                except httpx.HTTPStatusError as e:
                    raise ProtocolStepError(
                        f"Error descargando video: {e.response.status_code}"
                    ) from e
                temp_path = downloaded.path
                video_path = Path(temp_path)
            else:
                video_path = Path(media.location).resolve()

            if not video_path.is_file():
                logger.error("TikTok video not found", path=str(video_path))
                return self._failure("Archivo de video no encontrado")

            video_size = video_path.stat().st_size
            logger.info("TikTok video ready", size=video_size)

            async with self._client() as client:
                upload_url, publish_id = await self._init_upload(client, caption, video_size)
                await self._upload_file(client, upload_url, video_path)

            logger.info("TikTok video uploaded", publish_id=publish_id)
            return self._success(publish_id)

        except ProtocolStepError as e:
            logger.error("TikTok delivery failed", error=str(e))
            return self._failure(str(e))

        except Exception as e:
            logger.error("TikTok delivery failed", error=str(e))
            return self._failure(str(e) or type(e).__name__)

        finally:
            if temp_path is not None:
                remove_file(temp_path)

    async def _init_upload(
        self,
        client: httpx.AsyncClient,
        caption: str,
        video_size: int,
    ) -> tuple[str, str]:
        payload = {
            "post_info": {
                "title": self._caption(caption),
                "privacy_level": self._privacy_level,
                "disable_comment": False,
                "disable_duet": False,
                "disable_stitch": False,
            },
            "source_info": {
                "source": "FILE_UPLOAD",
                "video_size": video_size,
                "chunk_size": video_size,
                "total_chunk_count": TOTAL_CHUNK_COUNT,
            },
        }
        response = await client.post(
            self.INIT_URL,
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Content-Type": "application/json; charset=UTF-8",
            },
            json=payload,
        )

        try:
            data = response.json()
        except ValueError:
            data = {}

        error = data.get("error") or {}
        if isinstance(error, dict) and error.get("code") not in (None, "ok"):
            raise ProtocolStepError(f"{error.get('code')}: {error.get('message', '')}")
        if response.is_error:
            raise ProtocolStepError(self._api_error(response))

        upload_url = (data.get("data") or {}).get("upload_url")
        publish_id = (data.get("data") or {}).get("publish_id")
        if not upload_url:
            raise ProtocolStepError("No se recibió upload_url de TikTok")
        if not publish_id:
            raise ProtocolStepError("No se recibió publish_id de TikTok")

        logger.info(
            "TikTok upload initialised",
            publish_id=publish_id,
            upload_url=redact(upload_url, 40),
        )
        return upload_url, publish_id

    async def _upload_file(
        self,
        client: httpx.AsyncClient,
        upload_url: str,
        video_path: Path,
    ) -> None:
        content = await asyncio.to_thread(video_path.read_bytes)
        size = len(content)

        response = await client.put(
            upload_url,
            headers={
                "Content-Type": get_mime_type(str(video_path), DEFAULT_VIDEO_MIME_TYPE),
                "Content-Length": str(size),
                "Content-Range": f"bytes 0-{size - 1}/{size}",
            },
            content=content,
            timeout=self._upload_timeout,
        )
        if response.is_error:
            raise ProtocolStepError(f"Error al subir archivo: {response.status_code}")
