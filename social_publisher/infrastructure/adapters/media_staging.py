"""
Media staging.

Puts caller media where a publish protocol can consume it: a public URL for
URL-based protocols, a local file for byte-upload protocols.
"""

import asyncio
from pathlib import Path

import structlog

from ...domain.exceptions import MediaStagingError
from ...domain.ports import MediaHost
from ...domain.value_objects import (
    MediaKind,
    MediaRequirement,
    MediaSource,
    StagedMedia,
    extension_for_mime,
    is_image,
    is_video,
)
from ...domain.value_objects.media import extension_of
from ..media_files import remove_file, write_temp_file

logger = structlog.get_logger()

DEFAULT_MAX_IMAGE_MB = 10
DEFAULT_MAX_VIDEO_MB = 500


class MediaStager:
    """
    Stages MediaSource values into StagedMedia.

    Remote URLs pass through untouched: URL publishers use them directly and
    the TikTok publisher downloads them itself. Buffers and local files are
    hosted (PUBLIC_URL) or written to a temp file (LOCAL_FILE).
    """

    def __init__(
        self,
        media_host: MediaHost,
        temp_dir: str,
        max_image_mb: int = DEFAULT_MAX_IMAGE_MB,
        max_video_mb: int = DEFAULT_MAX_VIDEO_MB,
    ) -> None:
        self._media_host = media_host
        self._temp_dir = temp_dir
        self._max_mb = {MediaKind.IMAGE: max_image_mb, MediaKind.VIDEO: max_video_mb}

    async def stage(
        self,
        source: MediaSource,
        requirement: MediaRequirement,
    ) -> StagedMedia:
        """
        Produce media satisfying ``requirement``.

        Raises:
            MediaStagingError: If the media cannot be staged
        """
        kind = source.kind

        if source.url is not None:
            return StagedMedia(kind=kind, location=source.url)

        if not (is_image(source.mime_type) or is_video(source.mime_type)):
            raise MediaStagingError("El archivo debe ser una imagen o video válido")
        self._check_size(source)

        try:
            if requirement is MediaRequirement.PUBLIC_URL:
                return await self._host(source)

            if source.path is not None:
                if not Path(source.path).is_file():
                    raise MediaStagingError(f"Archivo no encontrado: {source.path}")
                return StagedMedia(kind=kind, location=source.path)

            suffix = extension_of(source.filename or "") or extension_for_mime(
                source.content_type
            )
            path = write_temp_file(source.data, self._temp_dir, "staged", suffix)
            logger.info("Media staged to temp file", path=path, kind=kind.value)
            return StagedMedia(kind=kind, location=path, owned=True, temporary=True)

        except MediaStagingError:
            raise
        except Exception as e:
            logger.error("Media staging failed", error=str(e))
            raise MediaStagingError(f"No se pudo preparar el archivo: {e}") from e

    def _check_size(self, source: MediaSource) -> None:
        if source.data is not None:
            size = len(source.data)
        elif Path(source.path).is_file():
            size = Path(source.path).stat().st_size
        else:
            return  # reported as not found below

        max_mb = self._max_mb[source.kind]
        if size > max_mb * 1024 * 1024:
            raise MediaStagingError(
                f"El archivo es demasiado grande. Máximo permitido: {max_mb}MB"
            )

    async def _host(self, source: MediaSource) -> StagedMedia:
        if source.path is not None:
            path = Path(source.path)
            if not path.is_file():
                raise MediaStagingError(f"Archivo no encontrado: {source.path}")
            data = await asyncio.to_thread(path.read_bytes)
            filename = source.filename or path.name
        else:
            data = source.data
            filename = source.filename or "upload"

        url = await self._media_host.upload_from_bytes(data, filename, source.content_type)
        logger.info("Media staged to public URL", url=url, kind=source.kind.value)
        return StagedMedia(kind=source.kind, location=url, owned=True)

    async def release(self, staged: StagedMedia) -> bool:
        """
        Delete media created by ``stage``.

        Best effort: failures are logged and reported as False, never raised,
        so cleanup cannot replace the publish outcome.
        """
        if not staged.owned:
            return False

        if staged.temporary:
            return remove_file(staged.location)

        try:
            await self._media_host.delete_by_reference(staged.location)
            return True
        except Exception as e:
            logger.error("Staged media cleanup failed", location=staged.location, error=str(e))
            return False
