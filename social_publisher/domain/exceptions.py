"""Errors raised inside the publishing core."""


class PublishingError(Exception):
    """Base class for publishing core errors."""


class UnsupportedPlatformError(PublishingError, ValueError):
    """Raised by the publisher selector for platforms it cannot serve."""

    def __init__(self, platform: object) -> None:
        self.platform = platform
        super().__init__(f"Plataforma no soportada: {platform}")


class InvalidPublishRequestError(PublishingError, ValueError):
    """A publish request violates its invariants (empty caption, no media)."""


class MediaStagingError(PublishingError):
    """Media could not be made available in the form a protocol needs."""
