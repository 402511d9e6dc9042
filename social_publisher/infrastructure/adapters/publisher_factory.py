"""
Factory for creating platform publisher instances.

This factory is the single dispatch point from a platform identifier to the
publisher that speaks that platform's protocol. It encapsulates the creation
logic and configuration.
"""

from ...channels import (
    FacebookPublisher,
    InstagramPublisher,
    LinkedInPublisher,
    TikTokPublisher,
)
from ...config import settings
from ...domain.exceptions import UnsupportedPlatformError
from ...domain.ports import SocialMediaPublisher
from ...domain.value_objects import Platform


class PublisherFactory:
    """
    Factory for creating platform publishers.

    Uses lazy initialization to avoid creating unused publishers. The mapping
    is 1:1; there is no fallback publisher.
    """

    _instances: dict[Platform, SocialMediaPublisher] = {}

    @classmethod
    def get_publisher(cls, platform: Platform | str) -> SocialMediaPublisher:
        """
        Get or create the publisher for a platform.

        Args:
            platform: Platform enum member or its name (case-insensitive)

        Returns:
            SocialMediaPublisher implementation for the platform

        Raises:
            UnsupportedPlatformError: If the platform has no publisher
        """
        platform_type = cls._parse(platform)
        if platform_type not in cls._instances:
            cls._instances[platform_type] = cls._create_publisher(platform_type)
        return cls._instances[platform_type]

    @staticmethod
    def _parse(platform: Platform | str) -> Platform:
        if isinstance(platform, Platform):
            return platform
        try:
            return Platform(str(platform).strip().lower())
        except ValueError:
            raise UnsupportedPlatformError(platform) from None

    @classmethod
    def _create_publisher(cls, platform: Platform) -> SocialMediaPublisher:
        """Create a new publisher instance for the platform."""
        match platform:
            case Platform.FACEBOOK:
                return FacebookPublisher(
                    access_token=settings.facebook_token,
                    page_id=settings.facebook_page_id,
                    api_version=settings.graph_api_version,
                    timeout=settings.http_timeout_seconds,
                )
            case Platform.INSTAGRAM:
                return InstagramPublisher(
                    access_token=settings.facebook_token,
                    instagram_account_id=settings.instagram_account_id,
                    api_version=settings.graph_api_version,
                    settle_seconds=settings.instagram_settle_seconds,
                    status_checks=settings.instagram_status_checks,
                    poll_interval_seconds=settings.instagram_poll_interval_seconds,
                    timeout=settings.http_timeout_seconds,
                )
            case Platform.LINKEDIN:
                return LinkedInPublisher(
                    access_token=settings.linkedin_token,
                    timeout=settings.http_timeout_seconds,
                    upload_timeout=settings.upload_timeout_seconds,
                )
            case Platform.TIKTOK:
                return TikTokPublisher(
                    access_token=settings.tiktok_token,
                    privacy_level=settings.tiktok_privacy_level,
                    temp_dir=settings.temp_dir,
                    timeout=settings.http_timeout_seconds,
                    upload_timeout=settings.upload_timeout_seconds,
                )
            case _:
                raise UnsupportedPlatformError(platform.value)

    @classmethod
    def register(cls, platform: Platform, publisher: SocialMediaPublisher) -> None:
        """Override the publisher used for a platform."""
        cls._instances[platform] = publisher

    @classmethod
    def reset(cls) -> None:
        """Reset all cached publisher instances (useful for testing)."""
        cls._instances.clear()
