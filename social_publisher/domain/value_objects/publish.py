from dataclasses import dataclass
from typing import Any

from ..exceptions import InvalidPublishRequestError
from .media import MediaSource
from .platform import Platform


@dataclass(frozen=True)
class PublishRequest:
    """One caption + media item to publish on one platform."""

    platform: Platform | str
    caption: str
    media: MediaSource

    def __post_init__(self) -> None:
        if not self.caption or not self.caption.strip():
            raise InvalidPublishRequestError("Caption es requerido")


@dataclass(frozen=True)
class PublishOutcome:
    """
    Uniform result of a publish attempt.

    Exactly one of ``post_id`` / ``error`` is set and ``success`` is true
    iff ``post_id`` is set.
    """

    success: bool
    platform: str
    post_id: str | None = None
    error: str | None = None
    media_url: str | None = None  # Staged media kept for the caller's bookkeeping

    def __post_init__(self) -> None:
        if self.success:
            if not self.post_id or self.error is not None:
                raise ValueError("Successful outcome requires post_id and no error")
        else:
            if not self.error or self.post_id is not None:
                raise ValueError("Failed outcome requires error and no post_id")

    @classmethod
    def succeeded(
        cls,
        platform: Platform | str,
        post_id: str,
        media_url: str | None = None,
    ) -> "PublishOutcome":
        return cls(
            success=True,
            platform=_platform_name(platform),
            post_id=str(post_id),
            media_url=media_url,
        )

    @classmethod
    def failed(cls, platform: Platform | str, error: str) -> "PublishOutcome":
        return cls(
            success=False,
            platform=_platform_name(platform),
            error=error or "Error desconocido",
        )

    def with_media_url(self, media_url: str | None) -> "PublishOutcome":
        if not self.success:
            return self
        return PublishOutcome.succeeded(self.platform, self.post_id, media_url)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "platform": self.platform}
        if self.success:
            data["post_id"] = self.post_id
            if self.media_url:
                data["media_url"] = self.media_url
        else:
            data["error"] = self.error
        return data


def _platform_name(platform: Platform | str) -> str:
    if isinstance(platform, Platform):
        return platform.value
    return str(platform)
