from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlparse

from ..exceptions import InvalidPublishRequestError

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def extension_of(location: str) -> str:
    """Lower-cased extension of a path or URL path, '' if none."""
    if location.startswith(("http://", "https://")):
        location = urlparse(location).path
    return PurePosixPath(location).suffix.lower()


IMAGE_MIME_TYPES = frozenset(
    {m for m in MIME_TYPES.values() if m.startswith("image/")} | {"image/jpg"}
)
VIDEO_MIME_TYPES = frozenset(m for m in MIME_TYPES.values() if m.startswith("video/"))


def base_mime_type(content_type: str | None) -> str:
    """``"Image/PNG; q=1"`` -> ``"image/png"``."""
    return (content_type or "").split(";")[0].strip().lower()


def is_image(content_type: str | None) -> bool:
    return base_mime_type(content_type) in IMAGE_MIME_TYPES


def is_video(content_type: str | None) -> bool:
    return base_mime_type(content_type) in VIDEO_MIME_TYPES


def get_mime_type(location: str, default: str = DEFAULT_MIME_TYPE) -> str:
    """MIME type derived from the file extension via the fixed lookup table."""
    return MIME_TYPES.get(extension_of(location), default)


def extension_for_mime(content_type: str | None) -> str:
    """Reverse lookup, '' when the content type is unknown."""
    if not content_type:
        return ""
    base = base_mime_type(content_type)
    for ext, mime in MIME_TYPES.items():
        if mime == base:
            return ext
    return ""


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"

    @classmethod
    def from_mime(cls, content_type: str) -> "MediaKind":
        return cls.VIDEO if content_type.startswith("video/") else cls.IMAGE


class MediaRequirement(str, Enum):
    """How a publish protocol needs to receive the media bytes."""

    PUBLIC_URL = "public_url"
    LOCAL_FILE = "local_file"


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


@dataclass(frozen=True)
class MediaSource:
    """
    Raw media handed to the facade by a caller.

    Exactly one of ``url``, ``path`` or ``data`` is set.
    """

    url: str | None = None
    path: str | None = None
    data: bytes | None = None
    filename: str | None = None
    content_type: str | None = None

    def __post_init__(self) -> None:
        given = [v for v in (self.url, self.path, self.data) if v is not None]
        if len(given) != 1:
            raise InvalidPublishRequestError(
                "La fuente de medios debe ser una URL, una ruta o un buffer"
            )
        if self.data is not None and len(self.data) == 0:
            raise InvalidPublishRequestError("El archivo recibido está vacío")

    @classmethod
    def from_url(cls, url: str) -> "MediaSource":
        return cls(url=url)

    @classmethod
    def from_path(cls, path: str, content_type: str | None = None) -> "MediaSource":
        return cls(path=str(path), content_type=content_type)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str,
        content_type: str | None = None,
    ) -> "MediaSource":
        return cls(data=data, filename=filename, content_type=content_type)

    @property
    def mime_type(self) -> str:
        if self.content_type:
            return self.content_type
        location = self.url or self.path or self.filename or ""
        return get_mime_type(location)

    @property
    def kind(self) -> MediaKind:
        return MediaKind.from_mime(self.mime_type)


@dataclass(frozen=True)
class StagedMedia:
    """
    Media placed where a publish protocol can consume it.

    ``owned`` marks media created by the staging step of the current call,
    which must be released once the call completes (on success only when
    ``temporary``). ``temporary`` marks a local temp file that is never kept.
    """

    kind: MediaKind
    location: str
    owned: bool = False
    temporary: bool = False

    @property
    def is_remote(self) -> bool:
        return is_remote(self.location)

    @property
    def local_path(self) -> str | None:
        return None if self.is_remote else self.location
