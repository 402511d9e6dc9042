"""
Local-disk implementation of the MediaHost port.

Files are stored under the upload directory with unique names and served
by the HTTP edge at ``<base_url>/uploads/<filename>``.
"""

from pathlib import Path
from urllib.parse import urlparse

import structlog

from ...domain.ports import MediaHost
from ...domain.value_objects import extension_for_mime
from ...domain.value_objects.media import extension_of, is_remote
from ..media_files import download_to_file, unique_filename

logger = structlog.get_logger()

UPLOADS_ROUTE = "uploads"


class LocalMediaHost(MediaHost):
    """Hosts media in a local directory exposed under ``/uploads``."""

    def __init__(
        self,
        upload_dir: str,
        base_url: str,
        prefix: str = "media",
        download_timeout: float = 300.0,
    ) -> None:
        self._upload_dir = Path(upload_dir)
        self._base_url = base_url.rstrip("/")
        self._prefix = prefix
        self._download_timeout = download_timeout
        self._ensure_upload_dir()

    def _ensure_upload_dir(self) -> None:
        if not self._upload_dir.exists():
            self._upload_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Created upload directory", path=str(self._upload_dir))

    def public_url(self, filename: str) -> str:
        return f"{self._base_url}/{UPLOADS_ROUTE}/{filename}"

    def resolve_path(self, reference: str) -> Path:
        """Map a hosted URL, a bare filename or a path to the file on disk."""
        if is_remote(reference):
            filename = Path(urlparse(reference).path).name
            return self._upload_dir / filename
        path = Path(reference)
        if path.parent == Path("."):
            return self._upload_dir / path.name
        return path

    async def upload_from_url(self, url: str) -> str:
        downloaded = await download_to_file(
            url,
            directory=str(self._upload_dir),
            prefix=self._prefix,
            timeout=self._download_timeout,
        )
        hosted = self.public_url(Path(downloaded.path).name)
        logger.info("Media hosted from URL", url=hosted, size=downloaded.size)
        return hosted

    async def upload_from_bytes(
        self,
        data: bytes,
        filename: str,
        content_type: str | None = None,
    ) -> str:
        suffix = extension_of(filename) or extension_for_mime(content_type)
        name = unique_filename(self._prefix, suffix)
        (self._upload_dir / name).write_bytes(data)
        hosted = self.public_url(name)
        logger.info("Media hosted from buffer", url=hosted, size=len(data))
        return hosted

    async def delete_by_reference(self, reference: str) -> None:
        """
        Delete hosted media.

        Raises:
            OSError: If the file exists but cannot be removed
        """
        path = self.resolve_path(reference)
        if path.exists():
            path.unlink()
            logger.info("Hosted media deleted", path=str(path))
        else:
            logger.debug("Hosted media already gone", path=str(path))
