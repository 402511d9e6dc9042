"""
Outbound port for social media publishing.

One implementation per social network. Each drives a different wire
protocol but honours the same contract.
"""

from abc import ABC, abstractmethod

from ..value_objects import MediaRequirement, Platform, PublishOutcome, StagedMedia


class SocialMediaPublisher(ABC):
    """
    Outbound port for publishing one post to one social network.

    Implementations never raise from ``publish``: every failure path is
    translated into a failed PublishOutcome.
    """

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Return the platform this publisher handles."""
        ...

    @property
    def media_requirement(self) -> MediaRequirement:
        """How the protocol needs to receive the media."""
        return MediaRequirement.PUBLIC_URL

    @abstractmethod
    async def publish(self, caption: str, media: StagedMedia) -> PublishOutcome:
        """
        Publish a caption with its media.

        Args:
            caption: Post text (truncated to the platform limit)
            media: Media staged per ``media_requirement``

        Returns:
            PublishOutcome with the platform post id or an error
        """
        ...
