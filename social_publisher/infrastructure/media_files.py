"""
Local file helpers for media staging.

Temp files get collision-resistant names (millisecond timestamp plus a
random suffix) so concurrent publish calls never share a path.
"""

import secrets
import time
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog

from ..domain.value_objects.media import extension_for_mime, extension_of, get_mime_type
from .logging import redact

logger = structlog.get_logger()

DOWNLOAD_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class DownloadedFile:
    path: str
    content_type: str
    size: int


def unique_filename(prefix: str, suffix: str = "") -> str:
    """Return e.g. ``tiktok_1733312345678_9f3a1c2e.mp4``."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}{suffix}"


def write_temp_file(data: bytes, directory: str, prefix: str, suffix: str = "") -> str:
    """Write a buffer to a uniquely named file and return its path."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / unique_filename(prefix, suffix)
    path.write_bytes(data)
    logger.debug("Temp file written", path=str(path), size=len(data))
    return str(path)


def remove_file(path: str | Path) -> bool:
    """
    Delete a file if it exists.

    Returns True when a file was removed. I/O errors are logged, not raised,
    so a failed cleanup never replaces the result of the operation it follows.
    """
    target = Path(path)
    try:
        if target.exists():
            target.unlink()
            logger.info("File deleted", path=str(target))
            return True
    except OSError as e:
        logger.error("File deletion failed", path=str(target), error=str(e))
    return False


async def download_to_file(
    url: str,
    directory: str,
    prefix: str,
    default_suffix: str = "",
    timeout: float = 300.0,
) -> DownloadedFile:
    """
    Stream a remote file to a uniquely named local file.

    The extension comes from the URL path, then the response content type,
    then ``default_suffix``. Partial files are removed if the download fails
    or is cancelled.

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx response
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path: Path | None = None

    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                content_type = response.headers.get("content-type")
                suffix = (
                    extension_of(url) or extension_for_mime(content_type) or default_suffix
                )
                path = target_dir / unique_filename(prefix, suffix)

                size = 0
                with path.open("wb") as fh:
                    async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
                        size += len(chunk)

    except BaseException:
        # Includes cancellation: no partial file survives an aborted download
        if path is not None:
            remove_file(path)
        raise

    logger.info(
        "Media downloaded",
        url=redact(url, 60),
        path=str(path),
        size=size,
    )
    return DownloadedFile(
        path=str(path),
        content_type=(content_type or get_mime_type(str(path))).split(";")[0].strip(),
        size=size,
    )
