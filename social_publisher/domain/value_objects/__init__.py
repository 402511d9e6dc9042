from .captions import CAPTION_LIMITS, caption_for, truncate
from .media import (
    MediaKind,
    MediaRequirement,
    MediaSource,
    StagedMedia,
    extension_for_mime,
    get_mime_type,
    is_image,
    is_video,
)
from .platform import Platform
from .publish import PublishOutcome, PublishRequest

__all__ = [
    "CAPTION_LIMITS",
    "MediaKind",
    "MediaRequirement",
    "MediaSource",
    "Platform",
    "PublishOutcome",
    "PublishRequest",
    "StagedMedia",
    "caption_for",
    "extension_for_mime",
    "get_mime_type",
    "is_image",
    "is_video",
    "truncate",
]
