"""Per-platform caption limits. Captions are truncated, never rejected."""

from .platform import Platform

FACEBOOK_CAPTION_LIMIT = 63206
INSTAGRAM_CAPTION_LIMIT = 2200
LINKEDIN_CAPTION_LIMIT = 3000
TIKTOK_VIDEO_TITLE_LIMIT = 150

CAPTION_LIMITS: dict[Platform, int] = {
    Platform.FACEBOOK: FACEBOOK_CAPTION_LIMIT,
    Platform.INSTAGRAM: INSTAGRAM_CAPTION_LIMIT,
    Platform.LINKEDIN: LINKEDIN_CAPTION_LIMIT,
    Platform.TIKTOK: TIKTOK_VIDEO_TITLE_LIMIT,
}


def truncate(text: str, limit: int) -> str:
    """Cut text to at most ``limit`` characters."""
    if limit < 0:
        raise ValueError("limit must be non-negative")
    return text[:limit]


def caption_for(platform: Platform, caption: str) -> str:
    """Apply the platform's caption limit, if it has one."""
    limit = CAPTION_LIMITS.get(platform)
    if limit is None:
        return caption
    return truncate(caption, limit)
