"""
Application service that orchestrates publishing.

One entry point for callers: resolve the publisher for the platform, stage
the media the way that publisher's protocol needs it, publish, and clean up
whatever this call created when publishing fails.
"""

import structlog

from ...domain.exceptions import UnsupportedPlatformError
from ...domain.ports import SocialMediaPublisher
from ...domain.value_objects import (
    MediaRequirement,
    MediaSource,
    Platform,
    PublishOutcome,
    PublishRequest,
    StagedMedia,
)
from ...infrastructure.adapters import MediaStager, PublisherFactory
from ...infrastructure.logging import Timer, correlation_context, redact

logger = structlog.get_logger()


class SocialMediaFacade:
    """
    Publish orchestrator.

    Guarantees:
    - selector errors (unsupported platform) are raised before anything is
      staged, so nothing can leak
    - every other failure comes back as a failed PublishOutcome
    - media staged by a failed call is released exactly once
    - hosted media is kept on success and reported in ``media_url``;
      temp files are always released
    """

    def __init__(
        self,
        stager: MediaStager,
        publisher_factory=PublisherFactory,
    ) -> None:
        """
        Args:
            stager: Media staging component
            publisher_factory: Anything with ``get_publisher(platform)``
        """
        self._stager = stager
        self._publisher_factory = publisher_factory

    async def publish(
        self,
        platform: Platform | str,
        caption: str,
        media: MediaSource,
    ) -> PublishOutcome:
        """
        Publish caption + media on one platform.

        Raises:
            UnsupportedPlatformError: If the platform has no publisher
        """
        publisher = self._publisher_factory.get_publisher(platform)

        if publisher.platform is Platform.TIKTOK:
            return await self.publish_video(caption, media, publisher=publisher)

        return await self._stage_and_publish(publisher, caption, media)

    async def publish_existing_url(
        self,
        platform: Platform | str,
        caption: str,
        url: str,
    ) -> PublishOutcome:
        """
        Publish media that is already hosted (e.g. generated content).

        No staging and no cleanup: the caller owns the URL.

        Raises:
            UnsupportedPlatformError: If the platform has no publisher
        """
        publisher = self._publisher_factory.get_publisher(platform)
        name = publisher.platform.value

        with correlation_context(platform=name):
            logger.info("Publishing existing media", url=redact(url, 80))
            try:
                source = MediaSource.from_url(url)
                staged = StagedMedia(kind=source.kind, location=url)
                return await self._run(publisher, caption, staged)
            except Exception as e:
                logger.error("Publish failed", error=str(e))
                return PublishOutcome.failed(name, _message(e))

    async def publish_video(
        self,
        caption: str,
        media: MediaSource,
        publisher: SocialMediaPublisher | None = None,
    ) -> PublishOutcome:
        """
        Publish a video through the chunked-upload protocol.

        The publisher receives a local file path (or a remote URL, which it
        downloads itself) since the protocol needs direct byte access.
        """
        if publisher is None:
            publisher = self._publisher_factory.get_publisher(Platform.TIKTOK)
        return await self._stage_and_publish(
            publisher, caption, media, requirement=MediaRequirement.LOCAL_FILE
        )

    async def publish_batch(self, requests: list[PublishRequest]) -> list[PublishOutcome]:
        """
        Publish several requests one after another.

        Each request is awaited before the next starts. An unsupported
        platform fails only its own request.
        """
        outcomes: list[PublishOutcome] = []
        for request in requests:
            try:
                outcome = await self.publish(request.platform, request.caption, request.media)
            except UnsupportedPlatformError as e:
                logger.error("Unsupported platform in batch", platform=str(request.platform))
                outcome = PublishOutcome.failed(_platform_name(request.platform), str(e))
            outcomes.append(outcome)

        success_count = sum(1 for o in outcomes if o.success)
        logger.info(
            "Batch publish completed",
            total=len(outcomes),
            successful=success_count,
        )
        return outcomes

    async def _stage_and_publish(
        self,
        publisher: SocialMediaPublisher,
        caption: str,
        media: MediaSource,
        requirement: MediaRequirement | None = None,
    ) -> PublishOutcome:
        name = publisher.platform.value
        requirement = requirement or publisher.media_requirement
        staged: StagedMedia | None = None

        with correlation_context(platform=name):
            logger.info("Publishing", kind=media.kind.value, requirement=requirement.value)
            if not caption or not caption.strip():
                return PublishOutcome.failed(name, "Caption es requerido")

            # Release unless the publish succeeded with hosted media; this also
            # runs when the task is cancelled mid-protocol.
            keep = False
            try:
                staged = await self._stager.stage(media, requirement)
                outcome = await self._run(publisher, caption, staged)
                keep = outcome.success and not staged.temporary
            except Exception as e:
                logger.error("Publish failed", error=str(e))
                return PublishOutcome.failed(name, _message(e))
            finally:
                if staged is not None and not keep:
                    await self._stager.release(staged)

            if staged.owned:
                return outcome.with_media_url(staged.location)
            return outcome

    async def _run(
        self,
        publisher: SocialMediaPublisher,
        caption: str,
        staged: StagedMedia,
    ) -> PublishOutcome:
        """Call the publisher and log the outcome."""
        if not caption or not caption.strip():
            return PublishOutcome.failed(publisher.platform, "Caption es requerido")

        with Timer() as t:
            outcome = await publisher.publish(caption, staged)

        if outcome.success:
            logger.info(
                "Successfully published",
                post_id=outcome.post_id,
                duration_ms=t.duration_ms,
            )
        else:
            logger.error(
                "Publication failed",
                error=outcome.error,
                duration_ms=t.duration_ms,
            )
        return outcome


def _message(error: Exception) -> str:
    return str(error) or type(error).__name__


def _platform_name(platform: Platform | str) -> str:
    return platform.value if isinstance(platform, Platform) else str(platform)
